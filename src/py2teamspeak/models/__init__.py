"""
Data models for py2teamspeak.

This package contains the roster participant records, the identity fields
supplied by the host application, and the connection state definitions.
"""

from .participant import ParticipantRecord, Talker, NOBODY
from .identity import IdentityState
from .connection import (
    ConnectionState,
    ConnectionContext,
    ConnectionModel,
    NEVER_PUSHED
)

__all__ = [
    'ParticipantRecord',
    'Talker',
    'NOBODY',
    'IdentityState',
    'ConnectionState',
    'ConnectionContext',
    'ConnectionModel',
    'NEVER_PUSHED',
]
