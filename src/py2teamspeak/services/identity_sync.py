"""
Nickname sync: keep the host-supplied participant number in the local
TeamSpeak nickname, e.g. ``Jeffrey Gilliam`` -> ``#61 Jeffrey Gilliam``.
"""

import logging
import re

from py2teamspeak.core.command_driver import ClientQueryCommands, CommandStatus
from py2teamspeak.models.connection import ConnectionContext
from py2teamspeak.models.identity import IdentityState

logger = logging.getLogger(__name__)

# Optional '#', optional spaces, digits, optional single space
NUMBER_PREFIX = re.compile(r"^(#?)([ ]*?)(\d*)([ ]?)")


def strip_number_prefix(nickname: str) -> str:
    """
    Remove a leading participant number from a nickname.

    Example:
        >>> strip_number_prefix("#61 Jeffrey Gilliam")
        'Jeffrey Gilliam'
        >>> strip_number_prefix("Jeffrey Gilliam")
        'Jeffrey Gilliam'
    """
    return NUMBER_PREFIX.sub("", nickname, count=1)


def compute_nickname(current: str, number: str, display_name: str = "",
                     use_display_name: bool = False) -> str:
    """
    Build the nickname to push.

    Args:
        current: Nickname currently set in TeamSpeak
        number: Participant number; empty removes any existing prefix
        display_name: Name supplied by the host application
        use_display_name: Replace the nickname with ``display_name`` when known

    Returns:
        The new nickname
    """
    base = strip_number_prefix(current)
    if not number:
        return base
    if use_display_name and display_name:
        base = display_name
    return f"#{number} {base}"


class IdentitySync:
    """
    Pushes a new nickname whenever the participant number changes.

    Runs on the listener thread once per loop iteration. The identity
    fields are read through their own locks and released before any
    command is sent.
    """

    def __init__(self, identity: IdentityState, enabled: bool = True,
                 use_display_name: bool = False):
        """
        Args:
            identity: Identity fields written by the host application
            enabled: Whether the number is pushed into the nickname at all
            use_display_name: Also replace the nickname with the display name
        """
        self.identity = identity
        self.enabled = enabled
        self.use_display_name = use_display_name

    def sync(self, context: ConnectionContext) -> bool:
        """
        Push the nickname if the participant number changed since last push.

        Args:
            context: Current connection context (its driver is used and its
                ``last_pushed_number`` and ``refresh_roster_pending`` updated)

        Returns:
            True if a clientupdate was sent and accepted

        Raises:
            NotConnectedError: If the session is gone
        """
        if not self.enabled:
            return False

        number, display_name = self.identity.snapshot()
        if number == context.last_pushed_number:
            return False

        driver = context.driver

        me = driver.execute(ClientQueryCommands.WHOAMI).raise_for_session()
        clid = me.first.get("clid")
        if not me.ok or not clid:
            return False

        info = driver.execute(ClientQueryCommands.CLIENT_VARIABLE, clid=clid).raise_for_session()
        current = info.first.get("client_nickname")
        if not info.ok or current is None:
            return False

        nickname = compute_nickname(current, number, display_name, self.use_display_name)

        if nickname == current:
            # Pushing an unchanged nickname is rejected as a duplicate
            logger.debug(f"Nickname was already set to {nickname}")
            context.last_pushed_number = number
            return False

        result = driver.execute(ClientQueryCommands.CLIENT_UPDATE_NICKNAME,
                                nickname=nickname).raise_for_session()

        if result.status is CommandStatus.PENDING:
            return False

        # A rejected nickname is not retried until the number changes again
        context.last_pushed_number = number

        if not result.ok:
            return False

        logger.info(f"Nickname set to {nickname}")
        context.refresh_roster_pending = True
        return True
