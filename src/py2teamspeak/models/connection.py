"""
Connection models for py2teamspeak.

Classes:
    ConnectionState: States of the listener's connection state machine
    ConnectionContext: Per-connection working state, rebuilt on every reconnect
    ConnectionModel: Thread-safe observable holder of the current state
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from py2teamspeak.core.command_driver import CommandDriver
    from py2teamspeak.core.query_connection import QueryConnection


# Pushed-number value meaning "nothing pushed on this connection yet"
NEVER_PUSHED = "xxx"


class ConnectionState(Enum):
    """
    States of the ClientQuery connection.

    DISCONNECTED -> CONNECTING -> GREETING -> AUTHENTICATING ->
    REGISTERING_EVENTS -> LISTENING, and back to DISCONNECTED on any failure.
    STOPPED is entered once after disconnect() and never left.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    GREETING = "greeting"
    AUTHENTICATING = "authenticating"
    REGISTERING_EVENTS = "registering_events"
    LISTENING = "listening"
    STOPPED = "stopped"


@dataclass
class ConnectionContext:
    """
    Working state for one physical connection attempt.

    Attributes:
        connection: The open socket wrapper
        driver: Command driver bound to the connection
        events_registered: True once clientnotifyregister succeeded
        refresh_roster_pending: Level-triggered "fetch clientlist" flag
        last_keepalive: Monotonic milliseconds of the last keepalive, None if never sent
        last_pushed_number: Participant number last synced into the nickname
    """

    connection: "QueryConnection"
    driver: "CommandDriver"
    events_registered: bool = False
    refresh_roster_pending: bool = True
    last_keepalive: Optional[float] = None
    last_pushed_number: str = NEVER_PUSHED


class ConnectionModel:
    """
    Observable holder of the current ConnectionState.

    Observers are called on the thread that changes the state (the
    listener thread) and must not block.

    Example:
        >>> model = ConnectionModel()
        >>> model.add_observer(lambda state: print(state.value))
        >>> model.state = ConnectionState.CONNECTING
        connecting
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = ConnectionState.DISCONNECTED
        self._observers: List[Callable[[ConnectionState], None]] = []

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @state.setter
    def state(self, new_state: ConnectionState) -> None:
        with self._lock:
            if new_state is self._state:
                return
            self._state = new_state
            observers = list(self._observers)

        for observer in observers:
            observer(new_state)

    def add_observer(self, callback: Callable[[ConnectionState], None]) -> None:
        """Register a callback for state changes."""
        with self._lock:
            if callback not in self._observers:
                self._observers.append(callback)

    def remove_observer(self, callback: Callable[[ConnectionState], None]) -> None:
        """Unregister a callback. No-op if it was not registered."""
        with self._lock:
            if callback in self._observers:
                self._observers.remove(callback)
