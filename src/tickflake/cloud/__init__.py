"""
Cloud Module - generators that mint flakes

Two variants over the same tick/sequence state machine:
- Generator: single owner, no locking
- SharedGenerator: lock-guarded, cloneable across threads

blocking_next_id layers a bounded wait on top of either.
"""

from tickflake.cloud.generator import Generator
from tickflake.cloud.protocols import IdGenerator, NextAvailId
from tickflake.cloud.shared import SharedGenerator
from tickflake.cloud.wait import block_duration, blocking_next_id

__all__ = [
    "Generator",
    "SharedGenerator",
    "IdGenerator",
    "NextAvailId",
    "blocking_next_id",
    "block_duration",
]
