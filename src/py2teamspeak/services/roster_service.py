"""
Roster of connected TeamSpeak participants.

The roster is written only by the listener thread (client list refreshes
and notification events) and read by any caller thread asking who is
talking. A single lock guards the whole map; it is never held across
network I/O.

Stale entries:
    A complete ``clientlist`` response (status id 0) replaces the roster:
    ids missing from it are pruned. A partial response (read timeout) only
    upserts. ``notifyclientleftview`` removes the participant immediately.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from py2teamspeak.core.command_driver import CommandDriver, CommandResult, ClientQueryCommands
from py2teamspeak.core.errors import ProtocolError
from py2teamspeak.core.message_parser import Record
from py2teamspeak.models.participant import ParticipantRecord
from py2teamspeak.utils.clock import monotonic_ms


class Notifications:
    """Notification names the roster reacts to."""

    TALK_STATUS_CHANGE = "notifytalkstatuschange"
    CLIENT_MOVED = "notifyclientmoved"
    CLIENT_ENTER_VIEW = "notifycliententerview"
    CLIENT_LEFT_VIEW = "notifyclientleftview"
    CLIENT_UPDATED = "notifyclientupdated"

    REFRESH_TRIGGERS = frozenset({CLIENT_ENTER_VIEW, CLIENT_LEFT_VIEW, CLIENT_UPDATED})


class RosterStore:
    """
    Thread-safe map of participant id -> ParticipantRecord.

    Example:
        >>> roster = RosterStore()
        >>> roster.apply_client_list([{'clid': '7', 'client_nickname': 'Jeff'}])
        >>> roster.apply_talk_event('7', talking=True, whispering=False)
        True
        >>> roster.get('7').is_talking
        True
    """

    def __init__(self, clock: Callable[[], float] = monotonic_ms):
        """
        Args:
            clock: Millisecond clock used to stamp activity
        """
        self._lock = threading.Lock()
        self._participants: Dict[str, ParticipantRecord] = {}
        self._clock = clock
        self.logger = logging.getLogger(__name__)

    # ========== Full refresh ==========

    def refresh_full(self, driver: CommandDriver) -> CommandResult:
        """
        Fetch ``clientlist`` and merge it into the roster.

        Args:
            driver: Command driver of the current connection

        Returns:
            The CommandResult of the clientlist command, so the caller can
            react to a lost session
        """
        result = driver.execute(ClientQueryCommands.CLIENT_LIST)
        self.apply_client_list(result.rows, complete=result.ok)
        return result

    def apply_client_list(self, rows: List[Record], complete: bool = True) -> None:
        """
        Upsert participants from clientlist rows.

        Talk and whisper flags of known participants are kept; every row is
        stamped with the current time.

        Args:
            rows: Records carrying at least ``clid`` and ``client_nickname``
            complete: True if ``rows`` is the whole roster; unknown ids are
                then pruned
        """
        now = self._clock()
        seen = set()

        with self._lock:
            for row in rows:
                clid = row.get("clid")
                if not clid:
                    continue

                existing = self._participants.get(clid)
                channel_id = row.get("cid") or (existing.channel_id if existing else None)

                self._participants[clid] = ParticipantRecord(
                    id=clid,
                    nickname=row.get("client_nickname", ""),
                    is_talking=existing.is_talking if existing else False,
                    is_whispering=existing.is_whispering if existing else False,
                    last_activity=now,
                    channel_id=channel_id,
                )
                seen.add(clid)

            pruned = []
            if complete:
                pruned = [clid for clid in self._participants if clid not in seen]
                for clid in pruned:
                    del self._participants[clid]

            count = len(self._participants)

        self.logger.debug(f"Roster refreshed: {count} participants, pruned {pruned}")

    # ========== Incremental events ==========

    def apply_talk_event(self, participant_id: str, talking: bool, whispering: bool) -> bool:
        """
        Update talk state of a known participant.

        Returns:
            True if the participant was known and updated
        """
        now = self._clock()
        with self._lock:
            existing = self._participants.get(participant_id)
            if existing is None:
                return False
            updated = existing.copy()
            updated.is_talking = talking
            updated.is_whispering = whispering
            updated.last_activity = now
            self._participants[participant_id] = updated

        self.logger.debug(
            f"{updated.nickname}: is_talking={talking}, is_whispering={whispering}"
        )
        return True

    def apply_move_event(self, participant_id: str, channel_id: str) -> bool:
        """
        Record that a known participant moved to another channel.

        Returns:
            True if the participant was known and updated
        """
        with self._lock:
            existing = self._participants.get(participant_id)
            if existing is None:
                return False
            updated = existing.copy()
            updated.channel_id = channel_id
            self._participants[participant_id] = updated
        return True

    def remove(self, participant_id: str) -> bool:
        """Drop a participant. Returns True if it was present."""
        with self._lock:
            return self._participants.pop(participant_id, None) is not None

    def apply_notification(self, records: List[Record]) -> bool:
        """
        Apply one parsed notification line.

        Args:
            records: Output of parse_line() for a ``notify...`` line

        Returns:
            True if the roster needs a full refresh

        Raises:
            ProtocolError: If a known notification is missing required fields
        """
        if not records or not records[0]:
            return False

        name = next(iter(records[0]))

        if name == Notifications.TALK_STATUS_CHANGE:
            event = records[0]
            clid = self._require(event, "clid", name)
            talking = self._flag(self._require(event, "status", name), name)
            whispering = self._flag(event.get("isreceivedwhisper", "0"), name)
            self.apply_talk_event(clid, talking, whispering)
            return False

        if name == Notifications.CLIENT_MOVED:
            event = records[0]
            self.apply_move_event(self._require(event, "clid", name),
                                  self._require(event, "ctid", name))
            return False

        if name == Notifications.CLIENT_LEFT_VIEW:
            for record in records:
                clid = record.get("clid")
                if clid:
                    self.remove(clid)

        if name in Notifications.REFRESH_TRIGGERS:
            return True

        self.logger.debug(f"Ignoring notification {name}")
        return False

    @staticmethod
    def _require(record: Record, key: str, name: str) -> str:
        value = record.get(key)
        if not value:
            raise ProtocolError(f"{name} without {key}", context={'record': dict(record)})
        return value

    @staticmethod
    def _flag(value: str, name: str) -> bool:
        try:
            return int(value) > 0
        except ValueError:
            raise ProtocolError(f"{name}: expected a number, got {value!r}")

    # ========== Readers ==========

    def snapshot(self) -> List[ParticipantRecord]:
        """Consistent copy of all participants."""
        with self._lock:
            return [record.copy() for record in self._participants.values()]

    def get(self, participant_id: str) -> Optional[ParticipantRecord]:
        """Copy of one participant, or None."""
        with self._lock:
            record = self._participants.get(participant_id)
            return record.copy() if record else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._participants)

    def __contains__(self, participant_id: object) -> bool:
        with self._lock:
            return participant_id in self._participants
