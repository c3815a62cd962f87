"""
Kernel - errors, clocks, logging and metrics shared by every module

Nothing in the kernel knows about bit layouts or generators; flake and
cloud build on top of it.
"""

from tickflake.kernel.errors import (
    AttemptsExhausted,
    CodecError,
    ConfigError,
    EpochInvalid,
    FieldOutOfRange,
    GenerationError,
    IdSegInvalid,
    InvalidId,
    LayoutInvalid,
    LockPoisoned,
    MutexError,
    NegativeValue,
    SegmentCountInvalid,
    SequenceMaxReached,
    TickflakeError,
    TimestampError,
    TimestampMaxReached,
)
from tickflake.kernel.time import Clock, ManualClock, SystemClock

__all__ = [
    # Time
    "Clock",
    "SystemClock",
    "ManualClock",
    # Errors
    "TickflakeError",
    "CodecError",
    "FieldOutOfRange",
    "NegativeValue",
    "InvalidId",
    "ConfigError",
    "LayoutInvalid",
    "IdSegInvalid",
    "SegmentCountInvalid",
    "EpochInvalid",
    "GenerationError",
    "TimestampError",
    "TimestampMaxReached",
    "SequenceMaxReached",
    "LockPoisoned",
    "MutexError",
    "AttemptsExhausted",
]
