"""
Services for py2teamspeak.

This package contains the roster store, talker selection, nickname sync,
settings lookup and the ClientQuery client that ties them together.
"""

from .configuration_service import Settings
from .roster_service import RosterStore
from .talker_service import select_talker
from .identity_sync import IdentitySync
from .query_client import TeamSpeakClient

__all__ = [
    'Settings',
    'RosterStore',
    'select_talker',
    'IdentitySync',
    'TeamSpeakClient',
]
