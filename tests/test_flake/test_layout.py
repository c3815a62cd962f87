"""
Tests for field layout arithmetic - shifts, masks and maximums
"""

import pytest

from tickflake.flake.layout import FieldLayout, field_layout
from tickflake.kernel.errors import LayoutInvalid


def test_single_segment_layout() -> None:
    """Test 43/8/12 derives the classic snowflake shifts and masks"""
    layout = field_layout(43, (8,), 12)

    assert layout.max_timestamp == 2**43 - 1
    assert layout.max_segments == (255,)
    assert layout.max_sequence == 4095

    assert layout.timestamp_shift == 20
    assert layout.segment_shifts == (12,)
    assert layout.sequence_shift == 0

    assert layout.timestamp_mask == (2**43 - 1) << 20
    assert layout.segment_masks == (0xFF << 12,)
    assert layout.sequence_mask == 0xFFF
    assert layout.total_bits == 63


def test_dual_segment_layout() -> None:
    """Test segment shifts count every field to the right"""
    layout = field_layout(43, (4, 4), 12)

    assert layout.timestamp_shift == 20
    assert layout.segment_shifts == (16, 12)
    assert layout.segment_masks == (0xF << 16, 0xF << 12)
    assert layout.widths == (43, 4, 4, 12)


def test_masks_do_not_overlap() -> None:
    """Test every bit belongs to at most one field"""
    layout = field_layout(40, (7, 5), 11)
    masks = [layout.timestamp_mask, *layout.segment_masks, layout.sequence_mask]

    combined = 0
    for mask in masks:
        assert combined & mask == 0
        combined |= mask

    assert combined == (1 << layout.total_bits) - 1


def test_signed_layout_keeps_sign_bit_free() -> None:
    """Test 64 bits are rejected for signed layouts"""
    with pytest.raises(LayoutInvalid) as exc_info:
        field_layout(44, (8,), 12)

    assert exc_info.value.widths == (44, 8, 12)
    assert "63" in str(exc_info.value)


def test_unsigned_layout_allows_64_bits() -> None:
    """Test unsigned layouts may use the top bit"""
    layout = field_layout(44, (8,), 12, signed=False)

    assert layout.total_bits == 64
    assert layout.max_value == 2**64 - 1


@pytest.mark.parametrize(
    "segment_bits",
    [(), (4, 4, 4)],
)
def test_segment_count_must_be_one_or_two(segment_bits: tuple[int, ...]) -> None:
    """Test a layout needs one or two segment fields"""
    with pytest.raises(LayoutInvalid):
        FieldLayout(timestamp_bits=40, segment_bits=segment_bits, sequence_bits=10)


def test_zero_width_field_rejected() -> None:
    """Test each field needs at least one bit"""
    with pytest.raises(LayoutInvalid):
        field_layout(43, (0,), 12)


def test_layouts_are_cached() -> None:
    """Test identical widths reuse one layout instance"""
    assert field_layout(41, (10,), 12) is field_layout(41, (10,), 12)
    assert field_layout(41, (10,), 12) == FieldLayout(
        timestamp_bits=41, segment_bits=(10,), sequence_bits=12
    )
