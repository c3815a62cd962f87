"""
tickflake - compact, sortable, time-ordered 64 bit identifiers

Each flake packs a millisecond timestamp, one or two partition segments
(node id, shard id) and a per-millisecond sequence into a single integer,
so services can mint unique ids without asking a central allocator.

    from tickflake import Generator, SingleIdFlake

    MyFlake = SingleIdFlake[43, 8, 12]
    cloud = Generator(MyFlake, 1679587200000, 1)
    flake = cloud.next_id()
    print(flake.id)

Fun fact: 4095 ids per millisecond per node is over 350 billion ids a
day - from a single generator!
"""

from tickflake.cloud import Generator, SharedGenerator, blocking_next_id
from tickflake.flake import (
    DualIdFlake,
    Flake,
    IntId,
    SingleIdFlake,
    StringId,
    UnsignedDualIdFlake,
    UnsignedSingleIdFlake,
)
from tickflake.kernel.errors import (
    AttemptsExhausted,
    ConfigError,
    GenerationError,
    SequenceMaxReached,
    TickflakeError,
)
from tickflake.settings import GeneratorSettings

__version__ = "0.1.0"
__all__ = [
    "Generator",
    "SharedGenerator",
    "blocking_next_id",
    "Flake",
    "SingleIdFlake",
    "DualIdFlake",
    "UnsignedSingleIdFlake",
    "UnsignedDualIdFlake",
    "IntId",
    "StringId",
    "GeneratorSettings",
    "TickflakeError",
    "ConfigError",
    "GenerationError",
    "SequenceMaxReached",
    "AttemptsExhausted",
    "__version__",
]
