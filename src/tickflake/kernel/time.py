"""
Clock abstraction for deterministic testing

Generators read wall-clock time through a Clock so tests can freeze time
inside a single millisecond, step across tick boundaries, or simulate a
clock that fails.

Fun fact: a millisecond is roughly how long it takes light to cross 300 km.
Plenty of time to mint a few thousand ids!
"""

import time
from typing import Protocol

NANOS_PER_MILLI = 1_000_000
NANOS_PER_SECOND = 1_000_000_000


class Clock(Protocol):
    """Protocol for wall-clock sources - allows deterministic testing"""

    def time_ns(self) -> int:
        """Return nanoseconds since the Unix epoch"""
        ...


class SystemClock:
    """Production clock backed by the system wall clock"""

    def time_ns(self) -> int:
        return time.time_ns()


class ManualClock:
    """
    Controllable clock for deterministic tests

    Time only moves when the test moves it, which makes it possible to
    exhaust a millisecond's sequence space on purpose.
    """

    def __init__(self, initial_ns: int = 0) -> None:
        """
        Initialize with optional fixed time

        Args:
            initial_ns: Starting time in nanoseconds since the Unix epoch
        """
        self._current_ns = initial_ns

    def time_ns(self) -> int:
        return self._current_ns

    def set_ns(self, value: int) -> None:
        """Set current time to a specific nanosecond value"""
        self._current_ns = value

    def set_ms(self, value: int) -> None:
        """Set current time to the start of a specific millisecond"""
        self._current_ns = value * NANOS_PER_MILLI

    def advance_ns(self, nanos: int) -> None:
        """Advance time by the given nanoseconds"""
        self._current_ns += nanos

    def advance_ms(self, millis: int = 1) -> None:
        """Advance time by the given milliseconds"""
        self._current_ns += millis * NANOS_PER_MILLI


# Global default clock
default_clock: Clock = SystemClock()
