"""Millisecond clock used for talk recency and keepalive timing."""

import time


def monotonic_ms() -> float:
    """Milliseconds from a monotonic clock (only differences are meaningful)."""
    return time.monotonic() * 1000.0
