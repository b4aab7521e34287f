# tests/test_utils.py
import socket

from tests.mock_teamspeak_server import MockClientQueryPlugin, WELCOME


class FakeQuerySocket:
    """
    In-memory stand-in for the socket returned by socket.create_connection().

    Every line written is answered immediately by a MockClientQueryPlugin.
    recv() raises socket.timeout when nothing is queued, like a real socket
    with a timeout set.
    """

    def __init__(self, banner="TS3 Client", plugin=None, **plugin_kwargs):
        self.plugin = plugin or MockClientQueryPlugin(**plugin_kwargs)
        self.sent = []
        self.closed = False
        self.timeout = None
        self._incoming = []
        self._hung_up = False
        if banner is not None:
            self.push(banner, *WELCOME)

    @property
    def responses(self):
        return self.plugin.responses

    def push(self, *lines):
        # The plug-in terminates lines with "\n\r"
        for line in lines:
            self._incoming.append((line + "\n\r").encode("utf-8"))

    def hang_up(self):
        """Make the next recv() report an orderly shutdown by the peer."""
        self._hung_up = True

    def sent_commands(self, name):
        return [line for line in self.sent if line.split(" ", 1)[0] == name]

    # socket API used by the client
    def settimeout(self, timeout):
        self.timeout = timeout

    def sendall(self, data):
        if self.closed:
            raise OSError("socket is closed")
        for line in data.decode("utf-8").splitlines():
            self.sent.append(line)
            self.push(*self.plugin.handle(line))

    def recv(self, size):
        if self.closed:
            raise OSError("socket is closed")
        if self._incoming:
            return self._incoming.pop(0)
        if self._hung_up:
            return b""
        raise socket.timeout("timed out")

    def close(self):
        self.closed = True


class ScriptedConnection:
    """QueryConnection stand-in that replays a fixed list of lines."""

    def __init__(self, *lines):
        self.lines = list(lines)
        self.sent = []
        self.timeouts = []

    def send_line(self, line):
        self.sent.append(line)

    def read_line(self, timeout):
        self.timeouts.append(timeout)
        return self.lines.pop(0) if self.lines else None
