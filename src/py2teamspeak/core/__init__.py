"""
Core layer for TeamSpeak ClientQuery communication.

This package contains the line protocol codec and parser, the socket
wrapper, and the command request/response driver.
"""

from .line_codec import encode, decode
from .message_parser import parse_line, is_event_line, is_status_record, error_id
from .query_connection import QueryConnection
from .socket_reader import LineReader
from .command_driver import (
    CommandDriver,
    CommandResult,
    CommandStatus,
    ClientQueryCommands,
    StatusIds,
    classify_status
)

__all__ = [
    'encode',
    'decode',
    'parse_line',
    'is_event_line',
    'is_status_record',
    'error_id',
    'QueryConnection',
    'LineReader',
    'CommandDriver',
    'CommandResult',
    'CommandStatus',
    'ClientQueryCommands',
    'StatusIds',
    'classify_status',
]
