"""
Tests for clock sources
"""

import time

from tickflake.cloud.protocols import IdGenerator
from tickflake.kernel.time import Clock, ManualClock, SystemClock


def test_manual_clock_moves_only_when_told() -> None:
    clock = ManualClock(5)

    assert clock.time_ns() == 5
    assert clock.time_ns() == 5

    clock.advance_ns(10)
    assert clock.time_ns() == 15

    clock.advance_ms()
    assert clock.time_ns() == 1_000_015

    clock.advance_ms(2)
    assert clock.time_ns() == 3_000_015


def test_manual_clock_setters() -> None:
    clock = ManualClock()

    clock.set_ms(42)
    assert clock.time_ns() == 42_000_000

    clock.set_ns(7)
    assert clock.time_ns() == 7


def test_system_clock_tracks_wall_time() -> None:
    before = time.time_ns()
    reading = SystemClock().time_ns()
    after = time.time_ns()

    assert before <= reading <= after


def test_clock_is_structural() -> None:
    """Test any object with time_ns can be passed where a Clock is expected"""

    class FixedClock:
        def time_ns(self) -> int:
            return 1

    clock: Clock = FixedClock()

    assert clock.time_ns() == 1
    assert not isinstance(clock, IdGenerator)
