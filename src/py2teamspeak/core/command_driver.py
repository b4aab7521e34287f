"""
Request/response handling for ClientQuery commands.

Every command is answered by zero or more data lines followed by one status
line of the form ``error id=<n> msg=<text>``. Notification lines can arrive
at any time, including in the middle of a response; the driver hands them
to an event handler instead of returning them as data.

A read timeout while waiting for the status line is not an error: the
result is reported as PENDING and the caller simply carries on with its
next loop iteration.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from .errors import NotConnectedError, ErrorCodes
from .line_codec import encode
from .message_parser import Record, parse_line, is_event_line, is_status_record, error_id
from .query_connection import QueryConnection

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, List[Record]], None]

APIKEY_MESSAGE = (
    "settings: teamspeak-apikey not valid or not set. "
    "See https://github.com/SIMRacingApps/SIMRacingApps/wiki/TeamSpeak-Integration"
)


class ClientQueryCommands:
    """Command templates used by the client. Arguments are line-encoded."""

    AUTH = "auth apikey={apikey}"
    CLIENT_LIST = "clientlist"
    CLIENT_VARIABLE = "clientvariable clid={clid} client_nickname client_is_talker"
    WHOAMI = "whoami"
    CLIENT_UPDATE_NICKNAME = "clientupdate client_nickname={nickname}"
    NOTIFY_REGISTER = "clientnotifyregister schandlerid=0 event=any"


class StatusIds:
    """Status ids of the terminal ``error`` record that need special handling."""

    OK = 0
    CONVERT_ERROR = 1540
    NOT_CONNECTED = 1794
    MISSING_APIKEY = 1796
    INVALID_SERVER_CONNECTION = 1799

    SESSION_FATAL = frozenset({NOT_CONNECTED, CONVERT_ERROR, INVALID_SERVER_CONNECTION})


class CommandStatus(Enum):
    """Outcome of a single command."""

    OK = "ok"
    FAILED = "failed"                  # non-zero status, connection stays up
    PENDING = "pending"                # no status line before the read timeout
    NOT_CONNECTED = "not_connected"    # remote session gone, reconnect


def classify_status(status_id: int) -> CommandStatus:
    """
    Map the numeric id of a status record to a CommandStatus.

    Example:
        >>> classify_status(0)
        <CommandStatus.OK: 'ok'>
        >>> classify_status(1799)
        <CommandStatus.NOT_CONNECTED: 'not_connected'>
        >>> classify_status(42)
        <CommandStatus.FAILED: 'failed'>
    """
    if status_id == StatusIds.OK:
        return CommandStatus.OK
    if status_id == StatusIds.MISSING_APIKEY or status_id in StatusIds.SESSION_FATAL:
        return CommandStatus.NOT_CONNECTED
    return CommandStatus.FAILED


@dataclass
class CommandResult:
    """Result of one command: its status plus the data rows collected."""

    command: str
    status: CommandStatus
    rows: List[Record] = field(default_factory=list)
    status_id: Optional[int] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is CommandStatus.OK

    @property
    def first(self) -> Record:
        """First data row, or an empty record."""
        return self.rows[0] if self.rows else {}

    def raise_for_session(self) -> "CommandResult":
        """
        Raise NotConnectedError if the remote session is gone.

        Returns:
            self, so calls can be chained
        """
        if self.status is CommandStatus.NOT_CONNECTED:
            raise NotConnectedError(
                f"{self.command} reported the session as gone",
                status_id=self.status_id,
                error_code=ErrorCodes.NOT_CONNECTED
            )
        return self


class CommandDriver:
    """
    Sends commands over a QueryConnection and collects their responses.

    Example:
        >>> driver = CommandDriver(connection, event_handler=on_event)
        >>> result = driver.execute(ClientQueryCommands.CLIENT_LIST)
        >>> if result.ok:
        ...     for row in result.rows:
        ...         print(row["clid"], row["client_nickname"])
    """

    # Seconds to wait for each response line
    READ_TIMEOUT = 0.5

    # Seconds to pause after the missing credential warning
    AUTH_FAILURE_PAUSE = 5.0

    def __init__(self, connection: QueryConnection,
                 event_handler: Optional[EventHandler] = None,
                 wait: Callable[[float], Any] = time.sleep,
                 read_timeout: Optional[float] = None):
        """
        Args:
            connection: Open connection to the plug-in
            event_handler: Called with (line, records) for notification lines
                that arrive while waiting for a response
            wait: Sleep function used for the credential pause; the client
                passes one that returns early on shutdown
            read_timeout: Seconds to wait for each response line; defaults
                to READ_TIMEOUT
        """
        self._connection = connection
        self._event_handler = event_handler
        self._wait = wait
        self.read_timeout = self.READ_TIMEOUT if read_timeout is None else read_timeout

    def execute(self, template: str, **args: Any) -> CommandResult:
        """
        Send a command and read its response up to the status line.

        Args:
            template: One of the ClientQueryCommands templates
            **args: Values for the template placeholders (encoded here)

        Returns:
            CommandResult

        Raises:
            ConnectionError: If the connection was closed by the peer
            OSError: If the socket failed
        """
        command = template.format(**{k: encode(str(v)) for k, v in args.items()})
        name = template.split(" ", 1)[0]

        self._connection.send_line(command)

        rows: List[Record] = []
        while True:
            line = self._connection.read_line(self.read_timeout)
            if line is None:
                logger.warning(f"{name}: timed out waiting for status line")
                return CommandResult(name, CommandStatus.PENDING, rows)

            if not line:
                continue

            records = parse_line(line)

            if is_event_line(line):
                if self._event_handler is not None:
                    self._event_handler(line, records)
                continue

            for record in records:
                if is_status_record(record):
                    return self._finish(name, record, rows)
                rows.append(record)

    def _finish(self, name: str, record: Record, rows: List[Record]) -> CommandResult:
        status_id = error_id(record)
        message = record.get("msg", "")
        status = classify_status(status_id)

        if status_id == StatusIds.MISSING_APIKEY:
            logger.warning(APIKEY_MESSAGE)
            self._wait(self.AUTH_FAILURE_PAUSE)
        elif status is CommandStatus.NOT_CONNECTED:
            logger.info(f"{name} returned error {status_id}, {message}: session not connected")
        elif status is CommandStatus.FAILED:
            logger.warning(f"{name} returned error {status_id}, {message}")

        return CommandResult(name, status, rows, status_id, message)
