"""
Clock sources for governance timing.

All time comparisons in the engine use whole seconds read from a single
`ClockSource`, so that voting windows and time-locks are deterministic
under test and replay.
"""

import threading
import time
from abc import ABC, abstractmethod


class ClockSource(ABC):
    """Supplies the current monotonic timestamp in seconds."""

    @abstractmethod
    def now(self) -> int:
        ...


class SystemClock(ClockSource):
    """
    Wall-clock seconds that never move backwards.

    If the host clock steps back (NTP correction), the last returned value
    is repeated until the host catches up.
    """

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            current = int(time.time())
            if current > self._last:
                self._last = current
            return self._last


class ManualClock(ClockSource):
    """Clock advanced explicitly by the caller. Used by tests and simulations."""

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("Clock cannot start before zero")
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise ValueError(
                f"Clock cannot move backwards ({timestamp} < {self._now})"
            )
        self._now = int(timestamp)
        return self._now

    def __repr__(self) -> str:
        return f"<ManualClock now={self._now}>"
