"""
TeamSpeak ClientQuery client.

This service keeps a persistent connection to the ClientQuery plug-in of a
locally running TeamSpeak client, tracks who is talking, and keeps the
host-supplied participant number in the local nickname.

All network I/O happens on one background thread ("TeamSpeak.Listener")
that runs the connection state machine:

    DISCONNECTED -> CONNECTING -> GREETING -> AUTHENTICATING
        -> REGISTERING_EVENTS -> LISTENING
        -> DISCONNECTED on any failure (after a 10 second backoff)

Caller threads only touch in-memory state (roster, identity fields, the
stop event) and never block on the network. No exception is ever raised
to a caller.

Example:
    >>> client = TeamSpeakClient(Settings({'teamspeak-apikey': 'ABCD-1234'}))
    >>> client.start_listener()
    >>> client.update("61", "Jeffrey Gilliam")
    >>> client.get_talker()
    ''
    >>> client.disconnect()
"""

import logging
import threading
from typing import List, Optional

from py2teamspeak.core.command_driver import CommandDriver, CommandStatus, ClientQueryCommands
from py2teamspeak.core.errors import ConnectionError, NotConnectedError
from py2teamspeak.core.message_parser import Record, parse_line, is_status_record, error_id
from py2teamspeak.core.query_connection import QueryConnection
from py2teamspeak.models.connection import ConnectionContext, ConnectionModel, ConnectionState
from py2teamspeak.models.identity import IdentityState
from py2teamspeak.models.participant import ParticipantRecord, Talker
from py2teamspeak.services import configuration_service as cfg
from py2teamspeak.services.configuration_service import Settings
from py2teamspeak.services.identity_sync import IdentitySync
from py2teamspeak.services.roster_service import RosterStore
from py2teamspeak.services.talker_service import select_talker, DEFAULT_TALK_TIMEOUT_MS
from py2teamspeak.utils.clock import monotonic_ms


class TeamSpeakClient:
    """
    Resilient client for the TeamSpeak ClientQuery plug-in.

    Public operations (safe from any thread, never block on I/O):
        start_listener(), disconnect(), update(), get_talker(),
        get_whispering(), current_talker(), roster_snapshot()
    """

    # The port is fixed by the ClientQuery plug-in
    CLIENTQUERY_PORT = 25639
    GREETING_BANNER = "TS3 Client"

    CONNECT_TIMEOUT = 5.0
    GREETING_TIMEOUT = 5.0
    POLL_INTERVAL = 0.5
    RETRY_DELAY = 10.0
    KEEPALIVE_INTERVAL_MS = 60000

    THREAD_NAME = "TeamSpeak.Listener"

    def __init__(self, settings: Optional[Settings] = None, host: Optional[str] = None,
                 talk_timeout_ms: float = DEFAULT_TALK_TIMEOUT_MS):
        """
        Initialize the client. Nothing connects until start_listener().

        Args:
            settings: Key/value settings (credential, nickname options, host)
            host: Host running TeamSpeak; overrides the teamspeak-host setting
            talk_timeout_ms: Recency window for talk/whisper flags
        """
        self.settings = settings or Settings()
        self.logger = logging.getLogger(__name__)
        self.host = (host or self.settings.get_str(cfg.HOST)).strip()
        if not self.host:
            self.host = cfg.DEFAULTS[cfg.HOST]
            self.logger.warning(f"{cfg.HOST} is blank, using {self.host}")
        self.port = self.CLIENTQUERY_PORT
        self.talk_timeout_ms = talk_timeout_ms

        self.roster = RosterStore()
        self.identity = IdentityState()
        self.connection_model = ConnectionModel()
        self.identity_sync = IdentitySync(
            self.identity,
            enabled=self.settings.get_bool(cfg.PUSH_NUMBER),
            use_display_name=self.settings.get_bool(cfg.UPDATE_NAME)
        )

        self._stop_event = threading.Event()
        self._thread_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._context: Optional[ConnectionContext] = None

        # Caller-side copies so update() only takes locks on change
        self._number_cached = ""
        self._name_cached = ""

    # ========== Public API ==========

    def start_listener(self) -> None:
        """Start the background listener. Calling it again is a no-op."""
        with self._thread_lock:
            if self._thread is not None:
                return
            if self._stop_event.is_set():
                self.logger.warning("start_listener() after disconnect() is ignored")
                return

            self._thread = threading.Thread(
                target=self._run,
                name=self.THREAD_NAME,
                daemon=True
            )
            self._thread.start()

    def disconnect(self, join: bool = False, timeout: float = 5.0) -> None:
        """
        Stop the listener and release the socket.

        The listener notices within one poll interval. This client cannot be
        restarted afterwards.

        Args:
            join: Wait for the listener thread to finish
            timeout: Seconds to wait when ``join`` is True
        """
        self.logger.info("disconnect()")
        self._stop_event.set()

        if join:
            with self._thread_lock:
                thread = self._thread
            if thread is not None and thread is not threading.current_thread():
                thread.join(timeout=timeout)
                if thread.is_alive():
                    self.logger.warning("Listener thread did not stop cleanly")

    def update(self, participant_number: Optional[str], display_name: Optional[str]) -> None:
        """
        Supply fresh identity fields from the host application.

        Cheap to call on every data update: the shared fields are only
        written when a value actually changed.
        """
        number = participant_number or ""
        name = display_name or ""

        if number != self._number_cached:
            self._number_cached = number
            self.identity.participant_number = number

        if name != self._name_cached:
            self._name_cached = name
            self.identity.display_name = name

    def current_talker(self) -> Talker:
        """The participant currently talking, or NOBODY."""
        return select_talker(self.roster.snapshot(), monotonic_ms(), self.talk_timeout_ms)

    def get_talker(self) -> str:
        """Nickname of the current talker, empty if nobody is talking."""
        return self.current_talker().nickname

    def get_whispering(self) -> str:
        """``"Whispering"`` if the current talker is whispering to us, else empty."""
        talker = self.current_talker()
        return "Whispering" if talker.talking and talker.whispering else ""

    def roster_snapshot(self) -> List[ParticipantRecord]:
        """Copy of the roster."""
        return self.roster.snapshot()

    @property
    def state(self) -> ConnectionState:
        return self.connection_model.state

    def is_running(self) -> bool:
        """True while the listener thread is alive."""
        with self._thread_lock:
            return self._thread is not None and self._thread.is_alive()

    # ========== Listener thread ==========

    def _wait(self, seconds: float) -> None:
        """Sleep that returns early when disconnect() is called."""
        self._stop_event.wait(seconds)

    def _run(self) -> None:
        self.logger.info("TeamSpeak listener is running...")

        try:
            while not self._stop_event.is_set():
                try:
                    self._step()

                except NotConnectedError:
                    self.logger.info("NotConnected. Retrying in 10 seconds...")
                    self._teardown()
                    self._wait(self.RETRY_DELAY)

                except (ConnectionError, OSError) as e:
                    self.logger.info(f"Connection lost ({e}). Retrying in 10 seconds...")
                    self._teardown()
                    self._wait(self.RETRY_DELAY)

                except Exception as e:
                    self.logger.error(f"Unexpected exception in listener: {e}", exc_info=True)
                    self._teardown()
        finally:
            self._teardown()
            self.connection_model.state = ConnectionState.STOPPED
            self.logger.info("TeamSpeak listener terminating")

    def _step(self) -> None:
        """One iteration of the state machine."""
        if self._context is None:
            self._context = self._open()
            if self._context is None:
                return

        self._listen_once(self._context)

    def _open(self) -> Optional[ConnectionContext]:
        """
        Connect, check the greeting, and authenticate.

        Returns:
            A ready ConnectionContext, or None after a failed attempt (the
            retry delay has already been waited)
        """
        self.connection_model.state = ConnectionState.CONNECTING
        connection = QueryConnection()

        try:
            connection.connect(self.host, self.port, timeout=self.CONNECT_TIMEOUT)
        except ConnectionRefusedError:
            self.logger.debug("TeamSpeak not running or ClientQuery plug-in not enabled")
            self._backoff()
            return None
        except (OSError, ValueError) as e:
            self.logger.error(f"Unexpected error connecting to {self.host}:{self.port}: {e}")
            self._backoff()
            return None

        context = ConnectionContext(connection=connection, driver=CommandDriver(
            connection,
            event_handler=self._on_notification,
            wait=self._wait,
            read_timeout=self.POLL_INTERVAL
        ))
        self._context = context

        self.connection_model.state = ConnectionState.GREETING
        banner = connection.read_line(self.GREETING_TIMEOUT)
        if banner != self.GREETING_BANNER:
            self.logger.warning(f"Not a known TeamSpeak Client ({banner})")
            self._teardown()
            self._backoff()
            return None

        connection.discard_pending(self.POLL_INTERVAL)
        self.logger.info("Connected to ClientQuery plug-in")

        self.connection_model.state = ConnectionState.AUTHENTICATING
        self._authenticate(context)

        return context

    def _backoff(self) -> None:
        self.connection_model.state = ConnectionState.DISCONNECTED
        self._wait(self.RETRY_DELAY)

    def _authenticate(self, context: ConnectionContext) -> bool:
        apikey = self.settings.get_str(cfg.APIKEY)
        if not apikey:
            return True

        self.logger.info("Authenticating with API key")
        result = context.driver.execute(ClientQueryCommands.AUTH, apikey=apikey)
        result.raise_for_session()
        return result.ok

    def _register_events(self, context: ConnectionContext) -> bool:
        result = context.driver.execute(ClientQueryCommands.NOTIFY_REGISTER)
        result.raise_for_session()
        context.events_registered = result.ok
        if not result.ok:
            self.logger.warning("Event registration failed, retrying after one poll interval")
        return result.ok

    def _listen_once(self, context: ConnectionContext) -> None:
        """Steady-state iteration: sync, refresh, keepalive, read one line."""
        if not context.events_registered:
            self.connection_model.state = ConnectionState.REGISTERING_EVENTS
            if not self._register_events(context):
                self._wait(self.POLL_INTERVAL)
                return
        self.connection_model.state = ConnectionState.LISTENING

        self.identity_sync.sync(context)

        if context.refresh_roster_pending:
            context.refresh_roster_pending = False
            result = self.roster.refresh_full(context.driver).raise_for_session()
            if result.status is CommandStatus.PENDING:
                context.refresh_roster_pending = True

        now = monotonic_ms()
        if context.last_keepalive is None \
                or context.last_keepalive + self.KEEPALIVE_INTERVAL_MS <= now:
            context.driver.execute(ClientQueryCommands.WHOAMI).raise_for_session()
            context.last_keepalive = now

        line = context.connection.read_line(self.POLL_INTERVAL)
        if not line:
            return

        try:
            self._process_line(line)
        except Exception as e:
            self.logger.warning(f"Failed to process line {line!r}: {e}")
            self._teardown()

    def _process_line(self, line: str) -> None:
        records = parse_line(line)
        if not records:
            return

        first = records[0]
        if is_status_record(first):
            status_id = error_id(first)
            if status_id != 0:
                self.logger.warning(f"Listener returned error {status_id}, {first.get('msg', '')}")
            return

        self._on_notification(line, records)

    def _on_notification(self, line: str, records: List[Record]) -> None:
        """Route a notification line into the roster."""
        self.logger.debug(f"Notification: {line}")
        if self.roster.apply_notification(records) and self._context is not None:
            self._context.refresh_roster_pending = True

    def _teardown(self) -> None:
        """Close the current connection, if any."""
        context = self._context
        self._context = None
        if context is not None:
            context.connection.close()
        if not self._stop_event.is_set():
            self.connection_model.state = ConnectionState.DISCONNECTED
