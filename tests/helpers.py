"""
Shared constants and stand-in generators for tests
"""

from tickflake.flake.models import DualIdFlake, Flake, SingleIdFlake
from tickflake.kernel.time import NANOS_PER_MILLI

# 2023-03-23 16:00:00 UTC
EPOCH_MS = 1_679_587_200_000

# One day after the epoch, 250 µs into the millisecond
START_NS = (EPOCH_MS + 86_400_000) * NANOS_PER_MILLI + 250_000

NodeFlake = SingleIdFlake[43, 8, 12]
TinyFlake = SingleIdFlake[43, 16, 4]
NodeDualFlake = DualIdFlake[43, 4, 4, 12]


class ScriptedGenerator:
    """
    Generator stand-in that replays a script of outcomes

    Each entry is either an exception (raised) or a flake (returned).
    """

    def __init__(self, *outcomes: Flake | Exception) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    def next_id(self) -> Flake:
        self.calls += 1
        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
