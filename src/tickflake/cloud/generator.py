"""
Generator - the exclusive (single owner) flake generator

next_id mutates the generator's counts with no locking at all. That makes
it the cheapest variant, and also NOT safe to share between threads; use
SharedGenerator for that.
"""

from datetime import datetime

from tickflake.cloud.common import (
    elapsed_since,
    epoch_datetime,
    prepare_generator,
    record_failure,
)
from tickflake.cloud.counts import Counts, advance
from tickflake.flake.models import Flake
from tickflake.kernel.errors import GenerationError
from tickflake.kernel.logging import get_logger
from tickflake.kernel.metrics import ids_generated_total
from tickflake.kernel.time import Clock, default_clock

logger = get_logger(__name__)

VARIANT = "exclusive"


class Generator:
    """
    Single-owner flake generator

    Example:
        MyFlake = SingleIdFlake[43, 8, 12]
        cloud = Generator(MyFlake, 1679587200000, 1)
        flake = cloud.next_id()
    """

    def __init__(
        self,
        flake_type: type[Flake],
        epoch_ms: int,
        segments: int | tuple[int, ...],
        *,
        clock: Clock | None = None,
    ) -> None:
        """
        Create a generator

        Args:
            flake_type: Concrete flake class, e.g. SingleIdFlake[43, 8, 12]
            epoch_ms: Epoch in milliseconds since the Unix epoch - must not
                be in the future
            segments: Partition segment(s), each within [1, max]
            clock: Time source (defaults to the system clock)

        Raises:
            IdSegInvalid: If a segment is out of range
            SegmentCountInvalid: If the segment count does not match the family
            EpochInvalid: If the epoch is out of range or in the future
            TimestampError: If the clock cannot be read
        """
        self._clock = clock or default_clock
        self._flake_type = flake_type
        self._epoch_ns, self._segments, elapsed_ns = prepare_generator(
            flake_type, epoch_ms, segments, self._clock
        )
        self._epoch_ms = epoch_ms
        self._max_timestamp = flake_type.MAX_TIMESTAMP
        self._max_sequence = flake_type.MAX_SEQUENCE
        self._counts = Counts.starting_at(elapsed_ns)

        self._generated = ids_generated_total.labels(variant=VARIANT)
        self._log = logger.bind(
            variant=VARIANT, flake=flake_type.__name__, segments=self._segments
        )
        self._log.info("Generator created", epoch_ms=epoch_ms)

    @property
    def flake_type(self) -> type[Flake]:
        return self._flake_type

    @property
    def epoch(self) -> datetime:
        return epoch_datetime(self._epoch_ms)

    @property
    def epoch_ms(self) -> int:
        return self._epoch_ms

    @property
    def segments(self) -> tuple[int, ...]:
        return self._segments

    def next_id(self) -> Flake:
        """
        Produce the next flake

        Raises:
            SequenceMaxReached: This millisecond is full; retry after
                exc.wait_ns nanoseconds
            TimestampMaxReached: The timestamp field is exhausted (terminal)
            TimestampError: The clock failed or went behind the epoch
        """
        try:
            elapsed_ns = elapsed_since(self._clock, self._epoch_ns)
            ts_ms, seq = advance(
                self._counts, elapsed_ns, self._max_timestamp, self._max_sequence
            )
        except GenerationError as exc:
            record_failure(self._log, VARIANT, exc)
            raise

        self._generated.inc()
        return self._flake_type.from_generated(ts_ms, self._segments, seq, elapsed_ns)

    def __repr__(self) -> str:
        return (
            f"Generator({self._flake_type.__name__}, epoch_ms={self._epoch_ms}, "
            f"segments={self._segments})"
        )
