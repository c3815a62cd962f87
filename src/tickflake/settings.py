"""
Generator settings - layout, epoch and partition in one validated model

Services usually configure their generator once at startup from the
environment:

    TICKFLAKE_EPOCH_MS=1679587200000
    TICKFLAKE_SEGMENTS=3            # or "3,1" for two segments
    TICKFLAKE_SEGMENT_BITS=8        # or "4,4"
    TICKFLAKE_SHARED=true

Fun fact: the default epoch (2023-03-23 16:00 UTC) leaves the 43 bit
timestamp field good until the year 2301.
"""

import os
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from tickflake.cloud.generator import Generator
from tickflake.cloud.shared import SharedGenerator
from tickflake.flake.layout import field_layout
from tickflake.flake.models import (
    DualIdFlake,
    Flake,
    SingleIdFlake,
    UnsignedDualIdFlake,
    UnsignedSingleIdFlake,
)
from tickflake.kernel.errors import LayoutInvalid
from tickflake.kernel.time import Clock

DEFAULT_EPOCH_MS = 1_679_587_200_000

ENV_PREFIX = "TICKFLAKE_"


class GeneratorSettings(BaseModel):
    """
    Everything needed to build a generator

    Bit widths are fixed here; once a generator exists its layout,
    epoch and segments never change.
    """

    epoch_ms: int = Field(
        default=DEFAULT_EPOCH_MS,
        ge=0,
        description="Epoch in milliseconds since the Unix epoch (must not be in the future)",
    )

    segments: tuple[int, ...] = Field(
        default=(1,),
        description="Partition segment value(s) - unique per generator instance",
    )

    timestamp_bits: int = Field(
        default=43,
        ge=1,
        description="Width of the millisecond timestamp field",
    )

    segment_bits: tuple[int, ...] = Field(
        default=(8,),
        description="Width of each partition segment field",
    )

    sequence_bits: int = Field(
        default=12,
        ge=1,
        description="Width of the per-millisecond sequence field",
    )

    signed: bool = Field(
        default=True,
        description="Keep ids within signed 64 bit range (63 usable bits)",
    )

    shared: bool = Field(
        default=False,
        description="Build a lock-guarded SharedGenerator instead of a Generator",
    )

    wait_attempts: int = Field(
        default=2,
        ge=1,
        description="Attempt budget for blocking_next_id",
    )

    model_config = {"frozen": True}

    @field_validator("segments", "segment_bits", mode="before")
    @classmethod
    def _split_csv(cls, value: Any) -> Any:
        if isinstance(value, int):
            return (value,)
        if isinstance(value, str):
            return tuple(int(part) for part in value.split(",") if part.strip())
        return value

    @model_validator(mode="after")
    def _check_layout(self) -> "GeneratorSettings":
        if len(self.segments) != len(self.segment_bits):
            raise ValueError(
                f"{len(self.segments)} segment value(s) given for "
                f"{len(self.segment_bits)} segment field(s)"
            )
        try:
            field_layout(self.timestamp_bits, self.segment_bits, self.sequence_bits, self.signed)
        except LayoutInvalid as exc:
            raise ValueError(str(exc)) from exc
        return self

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides: Any) -> "GeneratorSettings":
        """
        Load settings from environment variables

        Unset variables fall back to the model defaults; keyword overrides
        win over both.

        Args:
            prefix: Environment variable prefix
            **overrides: Explicit values

        Returns:
            Validated settings
        """
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is not None:
                values[name] = raw
        values.update(overrides)
        return cls(**values)

    def flake_type(self) -> type[Flake]:
        """Concrete flake class for these widths"""
        if len(self.segment_bits) == 1:
            family = SingleIdFlake if self.signed else UnsignedSingleIdFlake
        else:
            family = DualIdFlake if self.signed else UnsignedDualIdFlake
        return family[(self.timestamp_bits, *self.segment_bits, self.sequence_bits)]

    def build(self, *, clock: Clock | None = None) -> Generator | SharedGenerator:
        """
        Build the configured generator

        Returns:
            SharedGenerator if shared is set, otherwise Generator
        """
        generator_cls = SharedGenerator if self.shared else Generator
        return generator_cls(self.flake_type(), self.epoch_ms, self.segments, clock=clock)
