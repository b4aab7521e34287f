"""
Escaping for the ClientQuery text protocol.

Keys and values on the wire may not contain whitespace, the record separator
``|`` or ``/``; those characters (and backslash itself) travel as two-character
backslash sequences:

    ==========  ========
    character   escaped
    ==========  ========
    ``\\``      ``\\\\``
    space       ``\\s``
    ``/``       ``\\/``
    ``|``       ``\\p``
    backspace   ``\\b``
    form feed   ``\\f``
    newline     ``\\n``
    CR          ``\\r``
    tab         ``\\t``
    bell        ``\\a``
    vert. tab   ``\\v``
    ==========  ========

Example:
    >>> encode("#61 Jeffrey|Gilliam")
    '#61\\\\sJeffrey\\\\pGilliam'
    >>> decode(encode("a b\\\\c"))
    'a b\\\\c'
"""

from typing import List, Tuple

ESCAPED_BACKSLASH = "\\\\"

# Order matters: backslash must go first so the sequences it introduces
# are not escaped a second time.
ESCAPE_SEQUENCES: List[Tuple[str, str]] = [
    ("\\", ESCAPED_BACKSLASH),
    (" ", "\\s"),
    ("/", "\\/"),
    ("|", "\\p"),
    ("\b", "\\b"),
    ("\f", "\\f"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\t", "\\t"),
    ("\a", "\\a"),
    ("\v", "\\v"),
]


def encode(text: str) -> str:
    """Escape ``text`` for use as a protocol key or value."""
    for raw, escaped in ESCAPE_SEQUENCES:
        text = text.replace(raw, escaped)
    return text


def _decode_segment(segment: str) -> str:
    for raw, escaped in ESCAPE_SEQUENCES[1:]:
        segment = segment.replace(escaped, raw)
    return segment


def decode(text: str) -> str:
    """
    Reverse :func:`encode`.

    Escaped backslashes are set aside first and restored last, so a literal
    backslash followed by e.g. ``s`` is never re-read as an escaped space.
    Unknown escape sequences are left untouched.
    """
    if "\\" not in text:
        return text
    return "\\".join(_decode_segment(part) for part in text.split(ESCAPED_BACKSLASH))
