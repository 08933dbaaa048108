"""Injectable time source for the ledger.

The ledger never reads wall-clock time itself.  Every operation receives
an integer timestamp (seconds since the epoch) from a Clock supplied by
the caller's execution context:

    SystemClock  → real time, used by the HTTP layer and the CLI
    FixedClock   → deterministic time for tests and replays
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current ledger time."""

    def now(self) -> int:
        ...  # pragma: no cover


class SystemClock:
    """Production clock — whole seconds of real time."""

    def now(self) -> int:
        return int(time.time())


class FixedClock:
    """Test clock — returns a fixed timestamp until advanced.

    Usage:
        clock = FixedClock(100)
        clock.now()        # 100
        clock.advance(1)
        clock.now()        # 101
    """

    def __init__(self, value: int) -> None:
        if value < 0:
            raise ValueError("FixedClock requires a non-negative timestamp.")
        self._value = value

    def now(self) -> int:
        return self._value

    def advance(self, seconds: int = 1) -> None:
        self._value += seconds


_system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency — overridden in tests with a FixedClock."""
    return _system_clock
