"""
Syntax-level parsing of ClientQuery lines.

A line is a ``|``-separated list of records; each record is a space-separated
list of ``key=value`` (or bare ``key``) tokens whose keys and values are
escaped with :mod:`py2teamspeak.core.line_codec`.

This module knows nothing about command semantics beyond a few helpers for
recognising status records and notification lines.
"""

from typing import Dict, List, Mapping

from .line_codec import decode

Record = Dict[str, str]

RECORD_SEPARATOR = "|"
TOKEN_SEPARATOR = " "

STATUS_KEY = "error"

# Lines the plug-in pushes on its own, outside any command's response.
EVENT_PREFIXES = ("notify", "channellist")


def parse_line(line: str) -> List[Record]:
    """
    Split a raw protocol line into records.

    Args:
        line: One line, already stripped of its line terminator

    Returns:
        Ordered list of key -> value mappings, one per record. An empty
        line yields an empty list.

    Example:
        >>> parse_line("a=1 b=2|c=3")
        [{'a': '1', 'b': '2'}, {'c': '3'}]
        >>> parse_line("a")
        [{'a': ''}]
    """
    records: List[Record] = []
    if not line:
        return records

    for chunk in line.split(RECORD_SEPARATOR):
        record: Record = {}
        for token in chunk.split(TOKEN_SEPARATOR):
            if not token:
                continue
            key, sep, value = token.partition("=")
            record[decode(key)] = decode(value) if sep else ""
        records.append(record)

    return records


def is_event_line(line: str) -> bool:
    """True for unsolicited notification lines."""
    return line.startswith(EVENT_PREFIXES)


def is_status_record(record: Mapping[str, str]) -> bool:
    """True if ``record`` is a terminal status record (``error id=.. msg=..``)."""
    return STATUS_KEY in record


def error_id(record: Mapping[str, str]) -> int:
    """Numeric ``id`` of a status record; 0 when missing or not a number."""
    try:
        return int(record.get("id", "0"))
    except (TypeError, ValueError):
        return 0
