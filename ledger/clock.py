"""
Ledger Clock

Time source for end-time checks and event timestamps. Times are integer
unix seconds. Tests use FrozenClock to step time deterministically.
"""

from __future__ import annotations

import time
from typing import Optional, Protocol


class Clock(Protocol):
    """Protocol for time source."""

    def now(self) -> int:
        """Current time in unix seconds."""
        ...


class SystemClock:
    """Real-time clock implementation."""

    def now(self) -> int:
        return int(time.time())


class FrozenClock:
    """
    Frozen clock for deterministic testing.

    Always returns the same time until moved with set_time() or advance().
    """

    # 2026-01-01T00:00:00Z
    DEFAULT_TIME = 1767225600

    def __init__(self, frozen_time: Optional[int] = None) -> None:
        self._time = self.DEFAULT_TIME if frozen_time is None else frozen_time

    def now(self) -> int:
        return self._time

    def set_time(self, timestamp: int) -> None:
        self._time = timestamp

    def advance(self, seconds: int) -> int:
        self._time += seconds
        return self._time
