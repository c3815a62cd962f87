"""
Flake models - immutable identifiers and their integer/string codec

A flake family (SingleIdFlake, DualIdFlake and their unsigned variants) is
subscripted with bit widths to produce a concrete class, much like a
generic type:

    MyFlake = SingleIdFlake[43, 8, 12]
    flake = MyFlake.from_parts(1, 1, 1)
    assert flake.id == 1_052_673

Each width tuple yields exactly one class whose layout constants
(MAX_TIMESTAMP, TIMESTAMP_SHIFT, ...) are computed once at definition, so
packing and unpacking never re-derive them.

Fun fact: with a 43 bit millisecond timestamp a flake family runs for about
278 years before the timestamp field is exhausted.
"""

import re
from datetime import timedelta
from functools import lru_cache
from typing import Any, ClassVar

from pydantic import BaseModel, model_validator

from tickflake.flake.layout import FieldLayout, field_layout
from tickflake.kernel.errors import (
    FieldOutOfRange,
    IdSegInvalid,
    InvalidId,
    NegativeValue,
    SegmentCountInvalid,
)
from tickflake.kernel.time import NANOS_PER_MILLI

_DECIMAL = re.compile(r"-?[0-9]+")


class Flake(BaseModel):
    """
    Base flake - a decoded (timestamp, segments, sequence) triple

    Flakes are:
    - Immutable (frozen after construction)
    - Compared by decoded fields only (duration_ns is ignored)
    - Ordered by their packed integer within one layout

    duration_ns keeps sub-millisecond precision for freshly generated
    flakes. Flakes decoded from an integer or string only know their
    millisecond timestamp, so duration_ns is timestamp * 1,000,000.
    """

    timestamp: int
    segments: tuple[int, ...]
    sequence: int
    duration_ns: int

    model_config = {"frozen": True, "strict": True}

    # Family traits
    SEGMENT_NAMES: ClassVar[tuple[str, ...]] = ()
    SIGNED: ClassVar[bool] = True

    # Populated on concrete classes by subscripting the family
    FAMILY: ClassVar[type["Flake"] | None] = None
    LAYOUT: ClassVar[FieldLayout | None] = None
    MAX_TIMESTAMP: ClassVar[int] = 0
    MAX_SEQUENCE: ClassVar[int] = 0
    MAX_SEGMENTS: ClassVar[tuple[int, ...]] = ()
    MAX_VALUE: ClassVar[int] = 0
    TIMESTAMP_SHIFT: ClassVar[int] = 0
    TIMESTAMP_MASK: ClassVar[int] = 0
    SEGMENT_SHIFTS: ClassVar[tuple[int, ...]] = ()
    SEGMENT_MASKS: ClassVar[tuple[int, ...]] = ()
    SEQUENCE_MASK: ClassVar[int] = 0

    def __class_getitem__(cls, widths: Any) -> type["Flake"]:
        if not isinstance(widths, tuple):
            widths = (widths,)
        return _define(cls, widths)

    @model_validator(mode="before")
    @classmethod
    def _default_duration(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("duration_ns") is None:
            timestamp = data.get("timestamp")
            if isinstance(timestamp, int):
                data = {**data, "duration_ns": timestamp * NANOS_PER_MILLI}
        return data

    @model_validator(mode="after")
    def _check_ranges(self) -> "Flake":
        cls = type(self)
        cls._require_layout()

        if len(self.segments) != len(cls.SEGMENT_NAMES):
            raise SegmentCountInvalid(len(cls.SEGMENT_NAMES), len(self.segments))
        if not 0 <= self.timestamp <= cls.MAX_TIMESTAMP:
            raise FieldOutOfRange("timestamp", self.timestamp, cls.MAX_TIMESTAMP)
        for name, value, maximum in zip(cls.SEGMENT_NAMES, self.segments, cls.MAX_SEGMENTS):
            if not 0 <= value <= maximum:
                raise FieldOutOfRange(name, value, maximum)
        if not 0 <= self.sequence <= cls.MAX_SEQUENCE:
            raise FieldOutOfRange("sequence", self.sequence, cls.MAX_SEQUENCE)
        return self

    @classmethod
    def _require_layout(cls) -> FieldLayout:
        if cls.LAYOUT is None:
            raise TypeError(
                f"{cls.__name__} has no bit layout - subscript it first, "
                f"e.g. {cls.__name__}[43, {', '.join('8' for _ in cls.SEGMENT_NAMES)}, 12]"
            )
        return cls.LAYOUT

    # Construction

    @classmethod
    def _from_fields(
        cls, timestamp: int, segments: tuple[int, ...], sequence: int
    ) -> "Flake":
        return cls(timestamp=timestamp, segments=segments, sequence=sequence)

    @classmethod
    def from_generated(
        cls, timestamp: int, segments: tuple[int, ...], sequence: int, duration_ns: int
    ) -> "Flake":
        """
        Build a flake from values a generator already range-checked

        Skips validation; only generators should call this.
        """
        return cls.model_construct(
            timestamp=timestamp,
            segments=segments,
            sequence=sequence,
            duration_ns=duration_ns,
        )

    @classmethod
    def from_id(cls, value: int) -> "Flake":
        """
        Unpack an integer into a flake

        The bit pattern is trusted: each field is masked and shifted out
        with no further validation.

        Raises:
            NegativeValue: If the sign bit is set
            InvalidId: If value is not an integer or exceeds the base type
        """
        cls._require_layout()
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidId(value, "expected an integer")
        if value < 0:
            raise NegativeValue(value)
        if value > cls.MAX_VALUE:
            raise InvalidId(value, f"does not fit in {cls.MAX_VALUE.bit_length()} bits")

        timestamp = (value & cls.TIMESTAMP_MASK) >> cls.TIMESTAMP_SHIFT
        segments = tuple(
            (value & mask) >> shift
            for mask, shift in zip(cls.SEGMENT_MASKS, cls.SEGMENT_SHIFTS)
        )
        return cls.model_construct(
            timestamp=timestamp,
            segments=segments,
            sequence=value & cls.SEQUENCE_MASK,
            duration_ns=timestamp * NANOS_PER_MILLI,
        )

    @classmethod
    def from_string(cls, text: str) -> "Flake":
        """
        Parse the base-10 text form of a packed flake

        Raises:
            InvalidId: If text is not a plain base-10 integer
            NegativeValue: If the integer is negative
        """
        cls._require_layout()
        if not isinstance(text, str) or not _DECIMAL.fullmatch(text):
            raise InvalidId(text, "expected a base-10 integer string")
        if len(text.lstrip("-")) > len(str(cls.MAX_VALUE)):
            raise InvalidId(text, "too many digits")
        return cls.from_id(int(text))

    @classmethod
    def validate_segments(cls, segments: int | tuple[int, ...]) -> tuple[int, ...]:
        """
        Check segments a generator will embed in every flake

        Generator segments must be within [1, max] - zero is reserved.

        Raises:
            SegmentCountInvalid: If the number of segments is wrong
            IdSegInvalid: If a segment is out of range
        """
        cls._require_layout()
        if isinstance(segments, int):
            segments = (segments,)
        segments = tuple(segments)

        if len(segments) != len(cls.SEGMENT_NAMES):
            raise SegmentCountInvalid(len(cls.SEGMENT_NAMES), len(segments))
        for name, value, maximum in zip(cls.SEGMENT_NAMES, segments, cls.MAX_SEGMENTS):
            if isinstance(value, bool) or not isinstance(value, int):
                raise IdSegInvalid(name, value, maximum)
            if not 1 <= value <= maximum:
                raise IdSegInvalid(name, value, maximum)
        return segments

    @classmethod
    def valid_epoch(cls, epoch_ms: int) -> bool:
        """Check an epoch (milliseconds since Unix epoch) fits the timestamp field"""
        cls._require_layout()
        return 0 <= epoch_ms <= cls.MAX_TIMESTAMP

    # Codec

    @property
    def id(self) -> int:
        """The packed integer form"""
        value = (self.timestamp << self.TIMESTAMP_SHIFT) | self.sequence
        for segment, shift in zip(self.segments, self.SEGMENT_SHIFTS):
            value |= segment << shift
        return value

    def to_string(self) -> str:
        """Base-10 text of the packed integer, for consumers without 64 bit ints"""
        return str(self.id)

    def into_parts(self) -> tuple[int, ...]:
        """Split into (timestamp, *segments, sequence)"""
        return (self.timestamp, *self.segments, self.sequence)

    @property
    def duration(self) -> timedelta:
        """Time since the epoch (microsecond resolution)"""
        return timedelta(microseconds=self.duration_ns // 1_000)

    def __int__(self) -> int:
        return self.id

    # Equality, hashing and ordering ignore duration_ns

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Flake):
            return NotImplemented
        return self.LAYOUT == other.LAYOUT and self.into_parts() == other.into_parts()

    def __hash__(self) -> int:
        return hash((self.LAYOUT, self.into_parts()))

    def _comparable(self, other: object) -> bool:
        return isinstance(other, Flake) and self.LAYOUT == other.LAYOUT

    def __lt__(self, other: object) -> bool:
        if not self._comparable(other):
            return NotImplemented
        return self.id < other.id  # type: ignore[attr-defined]

    def __le__(self, other: object) -> bool:
        if not self._comparable(other):
            return NotImplemented
        return self.id <= other.id  # type: ignore[attr-defined]

    def __gt__(self, other: object) -> bool:
        if not self._comparable(other):
            return NotImplemented
        return self.id > other.id  # type: ignore[attr-defined]

    def __ge__(self, other: object) -> bool:
        if not self._comparable(other):
            return NotImplemented
        return self.id >= other.id  # type: ignore[attr-defined]

    def __reduce__(self) -> tuple[Any, ...]:
        # Concrete classes are created on the fly, so pickle the family + widths
        return (_restore, (self.FAMILY, self.LAYOUT.widths, self.id, self.duration_ns))  # type: ignore[union-attr]


class SingleIdFlake(Flake):
    """
    Flake with one id segment (e.g. a node id)

    Subscript with [timestamp_bits, primary_id_bits, sequence_bits]. The
    total must not exceed 63 bits so ids stay non-negative as signed
    64 bit integers.
    """

    SEGMENT_NAMES = ("primary_id",)

    MAX_PRIMARY_ID: ClassVar[int] = 0
    PRIMARY_ID_SHIFT: ClassVar[int] = 0
    PRIMARY_ID_MASK: ClassVar[int] = 0

    @classmethod
    def from_parts(cls, timestamp: int, primary_id: int, sequence: int) -> "SingleIdFlake":
        """
        Build a flake from its decoded parts

        Raises:
            FieldOutOfRange: If any part does not fit its field
            ValidationError: If any part is not an int
        """
        return cls._from_fields(timestamp, (primary_id,), sequence)  # type: ignore[return-value]

    @property
    def primary_id(self) -> int:
        return self.segments[0]


class DualIdFlake(Flake):
    """
    Flake with two id segments (e.g. machine id + worker id)

    Subscript with [timestamp_bits, primary_id_bits, secondary_id_bits,
    sequence_bits].
    """

    SEGMENT_NAMES = ("primary_id", "secondary_id")

    MAX_PRIMARY_ID: ClassVar[int] = 0
    PRIMARY_ID_SHIFT: ClassVar[int] = 0
    PRIMARY_ID_MASK: ClassVar[int] = 0
    MAX_SECONDARY_ID: ClassVar[int] = 0
    SECONDARY_ID_SHIFT: ClassVar[int] = 0
    SECONDARY_ID_MASK: ClassVar[int] = 0

    @classmethod
    def from_parts(
        cls, timestamp: int, primary_id: int, secondary_id: int, sequence: int
    ) -> "DualIdFlake":
        """
        Build a flake from its decoded parts

        Raises:
            FieldOutOfRange: If any part does not fit its field
            ValidationError: If any part is not an int
        """
        return cls._from_fields(timestamp, (primary_id, secondary_id), sequence)  # type: ignore[return-value]

    @property
    def primary_id(self) -> int:
        return self.segments[0]

    @property
    def secondary_id(self) -> int:
        return self.segments[1]


class UnsignedSingleIdFlake(SingleIdFlake):
    """SingleIdFlake over an unsigned 64 bit base - widths may total 64"""

    SIGNED = False


class UnsignedDualIdFlake(DualIdFlake):
    """DualIdFlake over an unsigned 64 bit base - widths may total 64"""

    SIGNED = False


@lru_cache(maxsize=None)
def _define(family: type[Flake], widths: tuple[int, ...]) -> type[Flake]:
    """Emit the concrete flake class for a family and its bit widths"""
    if family.LAYOUT is not None:
        raise TypeError(f"{family.__name__} already has a bit layout")
    if not family.SEGMENT_NAMES:
        raise TypeError(f"{family.__name__} is not a flake family")

    expected = len(family.SEGMENT_NAMES) + 2
    if len(widths) != expected or not all(
        isinstance(bits, int) and not isinstance(bits, bool) for bits in widths
    ):
        raise TypeError(f"{family.__name__} takes {expected} integer bit widths, got {widths!r}")

    layout = field_layout(widths[0], tuple(widths[1:-1]), widths[-1], family.SIGNED)
    name = f"{family.__name__}[{', '.join(str(bits) for bits in widths)}]"

    namespace: dict[str, Any] = {
        "__module__": family.__module__,
        "__qualname__": name,
        "__doc__": family.__doc__,
        "FAMILY": family,
        "LAYOUT": layout,
        "MAX_TIMESTAMP": layout.max_timestamp,
        "MAX_SEQUENCE": layout.max_sequence,
        "MAX_SEGMENTS": layout.max_segments,
        "MAX_VALUE": layout.max_value,
        "TIMESTAMP_SHIFT": layout.timestamp_shift,
        "TIMESTAMP_MASK": layout.timestamp_mask,
        "SEGMENT_SHIFTS": layout.segment_shifts,
        "SEGMENT_MASKS": layout.segment_masks,
        "SEQUENCE_MASK": layout.sequence_mask,
    }
    # Named aliases, e.g. MAX_PRIMARY_ID / PRIMARY_ID_SHIFT / PRIMARY_ID_MASK
    for segment_name, maximum, shift, mask in zip(
        family.SEGMENT_NAMES, layout.max_segments, layout.segment_shifts, layout.segment_masks
    ):
        upper = segment_name.upper()
        namespace[f"MAX_{upper}"] = maximum
        namespace[f"{upper}_SHIFT"] = shift
        namespace[f"{upper}_MASK"] = mask

    return type(family)(name, (family,), namespace)


def _restore(
    family: type[Flake], widths: tuple[int, ...], value: int, duration_ns: int
) -> Flake:
    flake = family[widths].from_id(value)
    return flake.model_copy(update={"duration_ns": duration_ns})
