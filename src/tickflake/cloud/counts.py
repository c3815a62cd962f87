"""
Tick/sequence state machine

Every next_id call lands in one of two states:

- same tick: an id was already produced during this millisecond, so the
  stored sequence is handed out and bumped
- new tick: the millisecond moved on, so the sequence restarts at 1

Ticks are compared at millisecond granularity only. Two reads of the clock
in the same millisecond never return bit-identical durations, and
comparing raw nanoseconds would reset the sequence spuriously.
"""

from tickflake.kernel.errors import SequenceMaxReached, TimestampMaxReached
from tickflake.kernel.time import NANOS_PER_MILLI


class Counts:
    """
    Mutable generator state

    Only touched inside next_id - under the lock for shared generators,
    by the single owner for exclusive ones.
    """

    def __init__(self, sequence: int, prev_tick_ns: int) -> None:
        self.sequence = sequence
        self.prev_tick_ns = prev_tick_ns

    @classmethod
    def starting_at(cls, elapsed_ns: int) -> "Counts":
        """Fresh state for a generator constructed elapsed_ns after its epoch"""
        return cls(sequence=1, prev_tick_ns=elapsed_ns)

    def __repr__(self) -> str:
        return f"Counts(sequence={self.sequence}, prev_tick_ns={self.prev_tick_ns})"


def advance(
    counts: Counts,
    elapsed_ns: int,
    max_timestamp: int,
    max_sequence: int,
) -> tuple[int, int]:
    """
    Claim the next (timestamp, sequence) slot

    Args:
        counts: Generator state, mutated on success
        elapsed_ns: Time since the generator epoch, read under exclusivity
        max_timestamp: Largest timestamp the flake layout can hold
        max_sequence: Largest sequence the flake layout can hold

    Returns:
        (timestamp in ms, sequence) for the flake being built

    Raises:
        TimestampMaxReached: If elapsed time no longer fits (terminal)
        SequenceMaxReached: If this millisecond is full (transient); state
            is left untouched
    """
    ts_ms = elapsed_ns // NANOS_PER_MILLI
    if ts_ms > max_timestamp:
        raise TimestampMaxReached(ts_ms, max_timestamp)

    if ts_ms == counts.prev_tick_ns // NANOS_PER_MILLI:
        seq = counts.sequence
        if seq > max_sequence:
            raise SequenceMaxReached(NANOS_PER_MILLI - (elapsed_ns % NANOS_PER_MILLI))

        counts.sequence = seq + 1
    else:
        seq = 1
        counts.prev_tick_ns = elapsed_ns
        counts.sequence = 2

    return ts_ms, seq
