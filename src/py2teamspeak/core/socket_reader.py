"""
Buffered line reader for the ClientQuery socket.

The ClientQuery protocol is an unframed stream of newline-terminated lines.
``socket.makefile()`` cannot be used with read timeouts: once a read times
out the file object refuses further reads. This reader keeps its own byte
buffer instead, so a timeout simply means "no complete line yet" and the
partial data survives until the next call.
"""

import logging
import socket
from typing import Dict, Optional

from .errors import ConnectionError, ErrorCodes

logger = logging.getLogger(__name__)


class LineReader:
    """
    Reads complete text lines from a socket with a per-call timeout.

    Example:
        >>> reader = LineReader(sock)
        >>> line = reader.read_line(timeout=0.5)
        >>> if line is None:
        ...     pass  # nothing arrived within 500ms
    """

    CHUNK_SIZE = 4096
    ENCODING = "utf-8"

    def __init__(self, sock: socket.socket):
        """
        Initialize the reader.

        Args:
            sock: Connected socket to read from
        """
        self._socket = sock
        self._buffer = b""

        self._stats = {
            'lines_read': 0,
            'bytes_read': 0,
            'timeouts': 0,
        }

    def read_line(self, timeout: float) -> Optional[str]:
        """
        Return the next complete line without its terminator.

        Args:
            timeout: Seconds to wait for more data on each recv()

        Returns:
            The decoded line, or None if the timeout expired before a full
            line was available

        Raises:
            ConnectionError: If the peer closed the connection
            OSError: For socket failures other than timeouts
        """
        self._socket.settimeout(timeout)

        while b"\n" not in self._buffer:
            try:
                chunk = self._socket.recv(self.CHUNK_SIZE)
            except socket.timeout:
                self._stats['timeouts'] += 1
                return None

            if not chunk:
                raise ConnectionError(
                    "ClientQuery connection closed by peer",
                    error_code=ErrorCodes.CONNECTION_CLOSED,
                    context={'buffered_bytes': len(self._buffer)}
                )

            self._buffer += chunk
            self._stats['bytes_read'] += len(chunk)

        raw, _, self._buffer = self._buffer.partition(b"\n")
        self._stats['lines_read'] += 1

        line = raw.decode(self.ENCODING, errors="replace").strip("\r")
        logger.debug(f"<< {line}")
        return line

    def discard_pending(self, timeout: float) -> int:
        """
        Read and drop lines until a read times out.

        Used right after the greeting to clear the welcome text the plug-in
        sends.

        Returns:
            Number of lines discarded
        """
        discarded = 0
        while self.read_line(timeout) is not None:
            discarded += 1
        if discarded:
            logger.debug(f"Discarded {discarded} lines after greeting")
        return discarded

    def get_stats(self) -> Dict[str, int]:
        """Get reader statistics."""
        return self._stats.copy()
