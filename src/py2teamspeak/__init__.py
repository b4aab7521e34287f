"""
py2teamspeak - client for the TeamSpeak ClientQuery plug-in.

Tracks who is talking (and whispering) on a locally running TeamSpeak
client and keeps a host-supplied participant number in the local nickname.
"""

from py2teamspeak.services.query_client import TeamSpeakClient
from py2teamspeak.services.configuration_service import Settings
from py2teamspeak.models.participant import Talker, ParticipantRecord

__version__ = "1.0.0"

__all__ = [
    'TeamSpeakClient',
    'Settings',
    'Talker',
    'ParticipantRecord',
]
