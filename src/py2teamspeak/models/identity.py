"""
Identity fields supplied by the host application.

The host pushes the local participant's number and display name from its
own thread; the listener thread reads them once per loop iteration.
"""

import threading
from typing import Tuple


class IdentityState:
    """
    Participant number and display name, each behind its own lock.

    Writing one field never waits on a reader of the other. An empty
    participant number means "unknown".

    Example:
        >>> identity = IdentityState()
        >>> identity.participant_number = "61"
        >>> identity.display_name = "Jeffrey Gilliam"
        >>> identity.snapshot()
        ('61', 'Jeffrey Gilliam')
    """

    def __init__(self):
        self._number_lock = threading.Lock()
        self._name_lock = threading.Lock()
        self._participant_number = ""
        self._display_name = ""

    @property
    def participant_number(self) -> str:
        with self._number_lock:
            return self._participant_number

    @participant_number.setter
    def participant_number(self, value: str) -> None:
        with self._number_lock:
            self._participant_number = value or ""

    @property
    def display_name(self) -> str:
        with self._name_lock:
            return self._display_name

    @display_name.setter
    def display_name(self, value: str) -> None:
        with self._name_lock:
            self._display_name = value or ""

    def snapshot(self) -> Tuple[str, str]:
        """Return (participant_number, display_name)."""
        return self.participant_number, self.display_name
