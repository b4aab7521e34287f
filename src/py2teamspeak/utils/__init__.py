"""Utility modules for py2teamspeak."""

from .clock import monotonic_ms

__all__ = [
    'monotonic_ms',
]
