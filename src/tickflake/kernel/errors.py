"""
Custom exceptions for tickflake

A small, well-defined error hierarchy lets callers tell apart "you configured
this wrong", "this generator is spent" and "try again in a moment" without
parsing messages.

Fun fact: Twitter retired its original Snowflake service in 2010 after just a
few months of development - the format outlived the server by over a decade!
"""


class TickflakeError(Exception):
    """Base exception for all tickflake errors"""

    def next_avail_id(self) -> int | None:
        """
        Nanoseconds until the next id can be produced, if known

        Only transient errors carry a wait estimate. Everything else returns
        None, which tells retry helpers to give up immediately.
        """
        return None


# Codec Errors


class CodecError(TickflakeError):
    """Base class for packing/unpacking errors"""

    pass


class FieldOutOfRange(CodecError):
    """Raised when a flake field does not fit in its bit width"""

    def __init__(self, field: str, value: int, maximum: int, minimum: int = 0) -> None:
        self.field = field
        self.value = value
        self.maximum = maximum
        self.minimum = minimum
        super().__init__(
            f"{field} {value} is out of range - must be within [{minimum}, {maximum}]"
        )


class NegativeValue(CodecError):
    """Raised when unpacking an integer with the sign bit set"""

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__(f"Cannot decode negative value {value} into a flake")


class InvalidId(CodecError):
    """Raised when a value cannot be decoded as a flake at all"""

    def __init__(self, value: object, reason: str = "") -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid id {value!r}" + (f": {reason}" if reason else ""))


# Configuration Errors


class ConfigError(TickflakeError):
    """Base class for construction-time errors"""

    pass


class LayoutInvalid(ConfigError):
    """Raised when bit widths cannot form a valid flake layout"""

    def __init__(self, widths: tuple[int, ...], reason: str) -> None:
        self.widths = widths
        self.reason = reason
        super().__init__(f"Invalid flake layout {widths}: {reason}")


class IdSegInvalid(FieldOutOfRange, ConfigError):
    """
    Raised when a generator is given an unusable partition segment

    Segments must be at least 1 so an all-zero partition can never be
    mistaken for a configured one.
    """

    def __init__(self, field: str, value: int, maximum: int) -> None:
        super().__init__(field, value, maximum, minimum=1)


class SegmentCountInvalid(ConfigError):
    """Raised when the number of segments does not match the flake family"""

    def __init__(self, expected: int, provided: int) -> None:
        self.expected = expected
        self.provided = provided
        super().__init__(f"Expected {expected} id segment(s), got {provided}")


class EpochInvalid(ConfigError):
    """Raised when an epoch is negative, too large, or in the future"""

    def __init__(self, epoch_ms: int, reason: str) -> None:
        self.epoch_ms = epoch_ms
        self.reason = reason
        super().__init__(f"Epoch {epoch_ms} ms is invalid: {reason}")


# Generation Errors


class GenerationError(TickflakeError):
    """Base class for errors raised while producing an id"""

    pass


class TimestampError(ConfigError, GenerationError):
    """Raised when the clock cannot provide a usable time since the epoch"""

    def __init__(self, message: str = "failed to read a valid timestamp") -> None:
        super().__init__(message)


class TimestampMaxReached(GenerationError):
    """
    Raised when elapsed time no longer fits in the timestamp field

    This is terminal for the generator. Wrapping around would silently
    reissue ids that were already handed out.
    """

    def __init__(self, timestamp: int, maximum: int) -> None:
        self.timestamp = timestamp
        self.maximum = maximum
        super().__init__(
            f"Timestamp {timestamp} ms exceeds the maximum of {maximum} ms for this layout"
        )


class SequenceMaxReached(GenerationError):
    """
    Raised when every sequence value of the current millisecond is used

    Carries an estimate of how long until the next millisecond starts, so
    callers can wait instead of spinning.
    """

    def __init__(self, wait_ns: int) -> None:
        self.wait_ns = wait_ns
        super().__init__(f"Sequence exhausted for this millisecond, retry in {wait_ns} ns")

    @property
    def wait_seconds(self) -> float:
        return self.wait_ns / 1_000_000_000

    def next_avail_id(self) -> int | None:
        return self.wait_ns


class LockPoisoned(GenerationError):
    """
    Raised when a shared generator's state was left inconsistent

    An unexpected exception escaped the critical section, so the counts can
    no longer be trusted by any clone of that generator.
    """

    def __init__(self, message: str = "shared generator state is poisoned") -> None:
        super().__init__(message)


MutexError = LockPoisoned


# Wait Errors


class AttemptsExhausted(TickflakeError):
    """
    Raised when a blocking wait runs out of attempts

    Deliberately not a GenerationError: the generator is healthy, it just
    could not hand out an id within the allowed number of tries.
    """

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"No id became available after {attempts} attempt(s)")
