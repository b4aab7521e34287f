"""
Socket management for the TeamSpeak ClientQuery plug-in.

This module owns the low-level socket for one physical connection: connect,
write a command line, read a response line with a timeout, and close with
a short grace period. It is used only from the client's background
listener thread.
"""

import socket
import logging
import threading
import time
from typing import Optional, Tuple

from .socket_reader import LineReader
from .errors import ConnectionError, ErrorCodes


class QueryConnection:
    """
    Manages the TCP socket to the ClientQuery plug-in.

    Example:
        >>> connection = QueryConnection()
        >>> connection.connect("localhost", 25639)
        >>> connection.send_line("whoami")
        >>> line = connection.read_line(timeout=0.5)
        >>> connection.close()
    """

    # Seconds to wait before closing so in-flight writes can flush
    CLOSE_GRACE = 1.0

    ENCODING = "utf-8"

    def __init__(self):
        """Initialize a disconnected connection."""
        self._socket: Optional[socket.socket] = None
        self._reader: Optional[LineReader] = None
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

        self._host: Optional[str] = None
        self._port: Optional[int] = None

    def connect(self, host: str, port: int, timeout: float = 5.0) -> None:
        """
        Open the TCP connection.

        Args:
            host: Host name or IP address of the machine running TeamSpeak
            port: ClientQuery port
            timeout: Connect timeout in seconds

        Raises:
            ValueError: If host or port is invalid
            ConnectionRefusedError: If nothing is listening
            OSError: For other socket errors
        """
        self._validate_host(host)
        self._validate_port(port)

        with self._lock:
            if self._socket is not None:
                self.logger.warning("Already connected. Closing previous socket first.")
                self._close_unsafe()

            self.logger.debug(f"Connecting to {host}:{port}")
            sock = socket.create_connection((host, port), timeout=timeout)
            self._socket = sock
            self._reader = LineReader(sock)
            self._host = host
            self._port = port
            self.logger.debug(f"Connected to {host}:{port}")

    def send_line(self, line: str) -> None:
        """
        Write one command line, appending the newline terminator.

        Raises:
            ConnectionError: If not connected
            OSError: If the write fails
        """
        with self._lock:
            if self._socket is None:
                raise ConnectionError("Not connected to ClientQuery plug-in",
                                      error_code=ErrorCodes.NOT_CONNECTED)
            self.logger.debug(f">> {line}")
            self._socket.sendall((line + "\n").encode(self.ENCODING))

    def read_line(self, timeout: float) -> Optional[str]:
        """
        Read one line, waiting at most ``timeout`` seconds.

        Returns:
            The line, or None on timeout

        Raises:
            ConnectionError: If not connected or the peer closed the socket
            OSError: If the read fails
        """
        reader = self._reader
        if reader is None:
            raise ConnectionError("Not connected to ClientQuery plug-in",
                                  error_code=ErrorCodes.NOT_CONNECTED)
        return reader.read_line(timeout)

    def discard_pending(self, timeout: float) -> int:
        """Drop buffered lines until a read times out."""
        reader = self._reader
        if reader is None:
            return 0
        return reader.discard_pending(timeout)

    def close(self) -> None:
        """
        Close the socket after a short grace period.

        Safe to call when not connected and safe to call more than once.
        Errors while closing are logged and otherwise ignored.
        """
        with self._lock:
            self._close_unsafe()

    def _close_unsafe(self) -> None:
        if self._socket is None:
            return

        sock = self._socket
        self._socket = None
        self._reader = None

        try:
            if self.CLOSE_GRACE > 0:
                time.sleep(self.CLOSE_GRACE)
            sock.close()
        except Exception as e:
            self.logger.debug(f"Error closing ClientQuery socket: {e}")

        self.logger.info(f"Disconnected from {self._host}:{self._port}")
        self._host = None
        self._port = None

    def is_connected(self) -> bool:
        """True while a socket is open."""
        with self._lock:
            return self._socket is not None

    def get_connection_info(self) -> Tuple[Optional[str], Optional[int]]:
        """Get (host, port) or (None, None) if not connected."""
        with self._lock:
            return self._host, self._port

    @staticmethod
    def _validate_host(host: str) -> None:
        if not isinstance(host, str) or not host.strip():
            raise ValueError(f"Invalid host: {host!r}")

    @staticmethod
    def _validate_port(port: int) -> None:
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError(f"Port must be an integer, got {type(port)}")

        if port < 1 or port > 65535:
            raise ValueError(f"Port must be 1-65535, got {port}")
