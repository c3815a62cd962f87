"""
Protocols shared by generators and the code that drives them

Generators are plain classes that happen to satisfy IdGenerator; nothing
inherits from these.
"""

from typing import Protocol, runtime_checkable

from tickflake.flake.models import Flake


@runtime_checkable
class IdGenerator(Protocol):
    """Anything that hands out flakes one at a time"""

    def next_id(self) -> Flake:
        """Return the next flake or raise a TickflakeError"""
        ...


@runtime_checkable
class NextAvailId(Protocol):
    """An error that may know how long until an id is available"""

    def next_avail_id(self) -> int | None:
        """Nanoseconds to wait before retrying, or None if retrying is pointless"""
        ...
