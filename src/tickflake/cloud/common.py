"""
Construction checks and clock reads shared by both generator variants
"""

from datetime import datetime, timedelta, timezone

import structlog

from tickflake.flake.models import Flake
from tickflake.kernel.errors import (
    EpochInvalid,
    GenerationError,
    SequenceMaxReached,
    TimestampError,
)
from tickflake.kernel.metrics import generation_errors_total, sequence_exhausted_total
from tickflake.kernel.time import NANOS_PER_MILLI, Clock

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def read_clock(clock: Clock) -> int:
    """
    Read nanoseconds since the Unix epoch

    Raises:
        TimestampError: If the clock itself fails
    """
    try:
        return clock.time_ns()
    except (OSError, OverflowError) as exc:
        raise TimestampError(f"failed to read the clock: {exc}") from exc


def elapsed_since(clock: Clock, epoch_ns: int) -> int:
    """
    Nanoseconds elapsed since epoch_ns

    Raises:
        TimestampError: If the clock fails or now reads earlier than the epoch
    """
    elapsed = read_clock(clock) - epoch_ns
    if elapsed < 0:
        raise TimestampError("clock reads earlier than the generator epoch")
    return elapsed


def prepare_generator(
    flake_type: type[Flake],
    epoch_ms: int,
    segments: int | tuple[int, ...],
    clock: Clock,
) -> tuple[int, tuple[int, ...], int]:
    """
    Validate generator arguments

    Args:
        flake_type: Concrete flake class, e.g. SingleIdFlake[43, 8, 12]
        epoch_ms: Epoch in milliseconds since the Unix epoch
        segments: One segment (int) or a tuple of segments
        clock: Time source

    Returns:
        (epoch in ns, normalized segments, ns elapsed since epoch right now)

    Raises:
        SegmentCountInvalid: If the segment count does not match the family
        IdSegInvalid: If a segment is outside [1, max]
        EpochInvalid: If the epoch does not fit or lies in the future
        TimestampError: If the clock cannot be read
    """
    if not (isinstance(flake_type, type) and issubclass(flake_type, Flake)):
        raise TypeError(f"expected a flake class, got {flake_type!r}")

    segments = flake_type.validate_segments(segments)

    if isinstance(epoch_ms, bool) or not isinstance(epoch_ms, int):
        raise EpochInvalid(epoch_ms, "must be an integer number of milliseconds")
    if not flake_type.valid_epoch(epoch_ms):
        raise EpochInvalid(epoch_ms, f"must be within [0, {flake_type.MAX_TIMESTAMP}]")

    epoch_ns = epoch_ms * NANOS_PER_MILLI
    now_ns = read_clock(clock)
    if epoch_ns > now_ns:
        raise EpochInvalid(epoch_ms, "is later than the current time")

    return epoch_ns, segments, now_ns - epoch_ns


def epoch_datetime(epoch_ms: int) -> datetime:
    """Epoch milliseconds as an aware UTC datetime"""
    return UNIX_EPOCH + timedelta(milliseconds=epoch_ms)


def record_failure(
    log: structlog.stdlib.BoundLogger, variant: str, exc: GenerationError
) -> None:
    """Update metrics (and logs, for fatal errors) after a failed next_id"""
    if isinstance(exc, SequenceMaxReached):
        sequence_exhausted_total.labels(variant=variant).inc()
        return

    generation_errors_total.labels(variant=variant, error=type(exc).__name__).inc()
    log.error("Generator cannot produce ids", error=type(exc).__name__, detail=str(exc))
