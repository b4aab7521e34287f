"""
Command-Line Interface - Talker Monitor

Connects to the ClientQuery plug-in of a running TeamSpeak client and
prints who is talking or whispering whenever that changes.

Usage:
    python -m py2teamspeak
    python -m py2teamspeak --host 192.168.1.20 --apikey ABCD-1234
    python -m py2teamspeak --number 61 --name "Jeffrey Gilliam" --update-name
    python -m py2teamspeak --config teamspeak.yaml --log-level DEBUG
"""

import sys
import time
import argparse
import logging
from typing import List, Optional

from py2teamspeak.core.errors import ConfigurationError
from py2teamspeak.services import configuration_service as cfg
from py2teamspeak.services.configuration_service import Settings
from py2teamspeak.services.query_client import TeamSpeakClient


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: List of arguments to parse. If None, uses sys.argv[1:]

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="TeamSpeak ClientQuery talker monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --host 192.168.1.20 --apikey ABCD-1234
  %(prog)s --number 61 --name "Jeffrey Gilliam" --update-name
        """
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host running TeamSpeak (default: teamspeak-host setting or localhost)"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML settings file"
    )

    parser.add_argument(
        "--apikey",
        type=str,
        default=None,
        help="ClientQuery API key (teamspeak-apikey)"
    )

    parser.add_argument(
        "--number",
        type=str,
        default=None,
        help="Participant number to put in front of the nickname"
    )

    parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Display name to use with --update-name"
    )

    parser.add_argument(
        "--update-name",
        action="store_true",
        default=None,
        help="Replace the nickname with --name (teamspeak-update-name)"
    )

    parser.add_argument(
        "--no-number",
        action="store_true",
        help="Do not touch the nickname at all (teamspeak-carnumber=false)"
    )

    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until Ctrl+C)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: INFO)"
    )

    return parser.parse_args(args)


def validate_args(args: argparse.Namespace) -> bool:
    """Validate parsed command-line arguments.

    Returns:
        True if arguments are valid, False otherwise
    """
    if args.host is not None and not args.host.strip():
        print("Error: Host cannot be empty if specified")
        return False

    if args.duration is not None and args.duration < 0:
        print(f"Error: Duration must not be negative, got {args.duration}")
        return False

    if args.number is not None and args.number and not args.number.isdigit():
        print(f"Error: Number must contain only digits, got {args.number}")
        return False

    return True


def build_settings(args: argparse.Namespace) -> Settings:
    """Load the settings file (if any) and apply command-line overrides.

    Raises:
        ConfigurationError: If the settings file cannot be loaded
    """
    settings = Settings.from_yaml(args.config) if args.config else Settings()
    settings.update({
        cfg.APIKEY: args.apikey,
        cfg.HOST: args.host,
        cfg.UPDATE_NAME: args.update_name,
        cfg.PUSH_NUMBER: False if args.no_number else None,
    })
    return settings


def setup_logging(level: str):
    """Configure application logging.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), None)

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def monitor(client: TeamSpeakClient, duration: Optional[float] = None,
            poll_interval: float = 0.1) -> None:
    """Print talker changes until interrupted or ``duration`` elapses."""
    previous = ""
    deadline = None if duration is None else time.monotonic() + duration

    while deadline is None or time.monotonic() < deadline:
        name = client.get_talker()
        if name != previous:
            if not name:
                print(f"Not Talking = {previous}")
            elif client.get_whispering():
                print(f"Whispering = {name}")
            else:
                print(f"   Talking = {name}")
            previous = name
        time.sleep(poll_interval)


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point.

    Args:
        args: Command-line arguments. If None, uses sys.argv[1:]

    Returns:
        Exit code (0 = success, 1 = error)
    """
    parsed_args = parse_args(args)

    setup_logging(parsed_args.log_level)
    logger = logging.getLogger(__name__)

    if not validate_args(parsed_args):
        return 1

    try:
        settings = build_settings(parsed_args)
    except ConfigurationError as e:
        logger.error(e.format_log_message())
        print(f"Error: {e.format_user_message()}")
        return 1

    client = TeamSpeakClient(settings)
    logger.info(f"Listening to TeamSpeak at {client.host}:{client.port}")
    client.start_listener()
    client.update(parsed_args.number, parsed_args.name)

    try:
        monitor(client, parsed_args.duration)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        client.disconnect(join=True)

    return 0


if __name__ == "__main__":
    sys.exit(main())
