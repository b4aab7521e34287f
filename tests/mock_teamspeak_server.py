# Mock TeamSpeak ClientQuery plug-in for testing
import socket
import threading
import logging
from typing import Callable, Dict, List, Sequence, Tuple, Union

from py2teamspeak.core.line_codec import encode, decode

logger = logging.getLogger(__name__)

OK = "error id=0 msg=ok"

WELCOME = (
    "Welcome to the TeamSpeak 3 ClientQuery interface, type \"help\" for a list of commands.",
    "Use the \"auth\" command to authenticate yourself.",
    "selected schandlerid=1",
)

Reply = Union[Sequence[str], Callable[[str], Sequence[str]]]


class MockClientQueryPlugin:
    """
    Answers ClientQuery commands the way a TeamSpeak client does.

    ``responses`` overrides the built-in reply for a command name, either
    with a list of lines or with a callable taking the command line.
    """

    def __init__(self, nickname: str = "Jeff", clid: str = "7",
                 others: Sequence[Tuple[str, str]] = (("9", "Bob"),),
                 responses: Dict[str, Reply] = None):
        self.nickname = nickname
        self.clid = clid
        self.others = list(others)
        self.responses = dict(responses or {})
        self.received: List[str] = []

    def handle(self, line: str) -> List[str]:
        self.received.append(line)
        name, _, args = line.partition(" ")

        if name in self.responses:
            reply = self.responses[name]
            return list(reply(line) if callable(reply) else reply)

        if name == "whoami":
            return [f"clid={self.clid} cid=1", OK]
        if name == "clientvariable":
            return [f"clid={self.clid} client_nickname={encode(self.nickname)} client_is_talker=0", OK]
        if name == "clientupdate":
            self.nickname = decode(args.partition("=")[2])
            return [OK]
        if name == "clientlist":
            rows = [(self.clid, self.nickname)] + self.others
            return ["|".join(
                f"clid={clid} cid=1 client_database_id={clid} "
                f"client_nickname={encode(nickname)} client_type=0"
                for clid, nickname in rows
            ), OK]
        return [OK]


class MockTeamSpeakServer:
    """Mock ClientQuery server listening on an ephemeral local port."""

    def __init__(self, plugin: MockClientQueryPlugin = None, host='127.0.0.1',
                 banner="TS3 Client"):
        self.plugin = plugin or MockClientQueryPlugin()
        self.host = host
        self.port = None
        self.banner = banner
        self.running = False
        self.server = None
        self.client = None
        self.thread = None
        self._send_lock = threading.Lock()

    def start(self):
        """Start the mock server."""
        self.server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.server.bind((self.host, 0))
        self.server.listen(1)
        self.server.settimeout(0.1)
        self.port = self.server.getsockname()[1]

        self.running = True
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()

        logger.info(f"Mock ClientQuery server started on {self.host}:{self.port}")

    def push(self, *lines: str):
        """Send unsolicited lines (notifications) to the connected client."""
        client = self.client
        if client is not None:
            self._send(client, lines)

    def _send(self, client, lines):
        data = "".join(line + "\n\r" for line in lines).encode("utf-8")
        with self._send_lock:
            client.sendall(data)

    def _run(self):
        while self.running:
            try:
                client, addr = self.server.accept()
            except socket.timeout:
                continue
            except OSError:
                break

            logger.info(f"ClientQuery connection from {addr}")
            client.settimeout(0.1)
            self.client = client
            try:
                self._serve(client)
            except OSError as e:
                if self.running:
                    logger.error(f"Mock server error: {e}")
            finally:
                self.client = None
                client.close()

    def _serve(self, client):
        self._send(client, (self.banner,) + WELCOME)
        buffer = b""
        while self.running:
            try:
                data = client.recv(1024)
            except socket.timeout:
                continue
            if not data:
                return
            buffer += data
            while b"\n" in buffer:
                raw, _, buffer = buffer.partition(b"\n")
                line = raw.decode("utf-8").strip("\r")
                if line:
                    self._send(client, self.plugin.handle(line))

    def stop(self):
        """Stop the mock server."""
        self.running = False
        if self.server:
            self.server.close()
        if self.thread:
            self.thread.join(timeout=2.0)
        logger.info("Mock ClientQuery server stopped")
