"""
Participant models for py2teamspeak.

Classes:
    ParticipantRecord: One connected TeamSpeak client as seen in the roster
    Talker: Result of talker selection (who is speaking, and how)
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass
class ParticipantRecord:
    """
    A connected participant.

    Attributes:
        id: Protocol-assigned client id (``clid``), unique within a session
        nickname: Display name (``client_nickname``)
        is_talking: Last talk status reported for this participant
        is_whispering: True if the last talk status was a received whisper
        last_activity: Monotonic milliseconds of the last refresh or talk event
        channel_id: Channel id (``cid``/``ctid``), if known
    """

    id: str
    nickname: str = ""
    is_talking: bool = False
    is_whispering: bool = False
    last_activity: float = 0.0
    channel_id: Optional[str] = None

    def copy(self) -> "ParticipantRecord":
        return replace(self)


@dataclass(frozen=True)
class Talker:
    """
    The participant currently considered to be speaking.

    An empty nickname means nobody is talking.
    """

    nickname: str = ""
    talking: bool = False
    whispering: bool = False

    @classmethod
    def from_record(cls, record: ParticipantRecord, whispering: bool) -> "Talker":
        return cls(nickname=record.nickname, talking=True, whispering=whispering)


NOBODY = Talker()
