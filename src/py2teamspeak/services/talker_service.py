"""
Talker selection.

Decides which single participant to report as "currently talking". A
participant who is talking *and* whispering to us wins over one who is only
talking; within each pass the first match in roster order wins. Talk flags
older than the recency window are ignored, so a missed "stopped talking"
event cannot leave someone talking forever.
"""

from typing import Iterable

from py2teamspeak.models.participant import ParticipantRecord, Talker, NOBODY

# Default recency window in milliseconds
DEFAULT_TALK_TIMEOUT_MS = 60000


def _is_recent(record: ParticipantRecord, talk_timeout_ms: float, now_ms: float) -> bool:
    return record.last_activity + talk_timeout_ms > now_ms


def select_talker(participants: Iterable[ParticipantRecord],
                  now_ms: float,
                  talk_timeout_ms: float = DEFAULT_TALK_TIMEOUT_MS) -> Talker:
    """
    Pick the current talker from a roster snapshot.

    Args:
        participants: Snapshot of the roster
        now_ms: Current time on the same clock as ``last_activity``
        talk_timeout_ms: Recency window

    Returns:
        Talker for the selected participant, or NOBODY

    Example:
        >>> x = ParticipantRecord("1", "X", is_talking=True, is_whispering=True, last_activity=1000)
        >>> y = ParticipantRecord("2", "Y", is_talking=True, last_activity=1000)
        >>> select_talker([y, x], now_ms=1500)
        Talker(nickname='X', talking=True, whispering=True)
    """
    participants = list(participants)

    for record in participants:
        if record.is_whispering and record.is_talking \
                and _is_recent(record, talk_timeout_ms, now_ms):
            return Talker.from_record(record, whispering=True)

    for record in participants:
        if record.is_talking and _is_recent(record, talk_timeout_ms, now_ms):
            return Talker.from_record(record, whispering=False)

    return NOBODY
