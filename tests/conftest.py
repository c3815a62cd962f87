"""
Pytest configuration and shared fixtures

Fun fact: most generator tests run on a ManualClock, so "one millisecond"
lasts exactly as long as the test wants it to!
"""

import pytest

from helpers import EPOCH_MS, START_NS
from tickflake.kernel.time import ManualClock


@pytest.fixture
def clock() -> ManualClock:
    """Provide a controllable clock parked one day after EPOCH_MS"""
    return ManualClock(START_NS)


@pytest.fixture
def epoch_ms() -> int:
    """Epoch shared by generator tests (2023-03-23 16:00:00 UTC)"""
    return EPOCH_MS
