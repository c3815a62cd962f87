"""
Field layout - bit widths turned into shifts, masks and maximums

A layout is fixed when a flake class is defined and never re-derived while
ids are being generated. Fields are packed most-significant first:
timestamp, segment(s), sequence.

```text
 0 | timestamp (43) | primary id (8) | sequence (12)
63   62          20   19          12   11        0
```
"""

from functools import lru_cache

from pydantic import BaseModel, model_validator

from tickflake.kernel.errors import LayoutInvalid

SIGNED_BITS = 63
UNSIGNED_BITS = 64


class FieldLayout(BaseModel):
    """
    Bit-field layout of a flake

    Derived values:
    - max(field) = 2^bits - 1
    - shift(field) = sum of widths of all fields to its right
    - mask(field) = max(field) << shift(field)
    """

    timestamp_bits: int
    segment_bits: tuple[int, ...]
    sequence_bits: int
    signed: bool = True

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_widths(self) -> "FieldLayout":
        widths = self.widths
        if not 1 <= len(self.segment_bits) <= 2:
            raise LayoutInvalid(widths, "a flake needs one or two id segments")
        if any(bits < 1 for bits in widths):
            raise LayoutInvalid(widths, "every field needs at least one bit")

        limit = SIGNED_BITS if self.signed else UNSIGNED_BITS
        if self.total_bits > limit:
            raise LayoutInvalid(
                widths, f"{self.total_bits} bits exceed the {limit} available bits"
            )
        return self

    @property
    def widths(self) -> tuple[int, ...]:
        return (self.timestamp_bits, *self.segment_bits, self.sequence_bits)

    @property
    def total_bits(self) -> int:
        return sum(self.widths)

    @property
    def max_timestamp(self) -> int:
        return (1 << self.timestamp_bits) - 1

    @property
    def max_segments(self) -> tuple[int, ...]:
        return tuple((1 << bits) - 1 for bits in self.segment_bits)

    @property
    def max_sequence(self) -> int:
        return (1 << self.sequence_bits) - 1

    @property
    def sequence_shift(self) -> int:
        return 0

    @property
    def segment_shifts(self) -> tuple[int, ...]:
        shifts = []
        shift = self.sequence_bits
        for bits in reversed(self.segment_bits):
            shifts.append(shift)
            shift += bits
        return tuple(reversed(shifts))

    @property
    def timestamp_shift(self) -> int:
        return self.sequence_bits + sum(self.segment_bits)

    @property
    def timestamp_mask(self) -> int:
        return self.max_timestamp << self.timestamp_shift

    @property
    def segment_masks(self) -> tuple[int, ...]:
        return tuple(
            maximum << shift
            for maximum, shift in zip(self.max_segments, self.segment_shifts)
        )

    @property
    def sequence_mask(self) -> int:
        return self.max_sequence

    @property
    def max_value(self) -> int:
        """Largest integer the base type can hold"""
        return (1 << (SIGNED_BITS if self.signed else UNSIGNED_BITS)) - 1


@lru_cache(maxsize=None)
def field_layout(
    timestamp_bits: int,
    segment_bits: tuple[int, ...],
    sequence_bits: int,
    signed: bool = True,
) -> FieldLayout:
    """
    Build (or reuse) the layout for the given widths

    Raises:
        LayoutInvalid: If the widths cannot be packed into the base type
    """
    return FieldLayout(
        timestamp_bits=timestamp_bits,
        segment_bits=segment_bits,
        sequence_bits=sequence_bits,
        signed=signed,
    )
