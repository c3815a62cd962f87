"""
Flake Module - bit layouts and the identifier codec

Defines the flake families and turns flakes into packed integers, base-10
strings and back.

Fun fact: the sign bit is left unused on purpose - a signed 64 bit id that
is never negative sorts the same way in every database and language.
"""

from tickflake.flake.layout import FieldLayout, field_layout
from tickflake.flake.models import (
    DualIdFlake,
    Flake,
    SingleIdFlake,
    UnsignedDualIdFlake,
    UnsignedSingleIdFlake,
)
from tickflake.flake.serde import IntId, StringId

__all__ = [
    "FieldLayout",
    "field_layout",
    "Flake",
    "SingleIdFlake",
    "DualIdFlake",
    "UnsignedSingleIdFlake",
    "UnsignedDualIdFlake",
    "IntId",
    "StringId",
]
