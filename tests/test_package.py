"""
End-to-end tests through the top-level tickflake API
"""

import json

from pydantic import BaseModel

import tickflake
from tickflake import (
    DualIdFlake,
    GeneratorSettings,
    SingleIdFlake,
    StringId,
    blocking_next_id,
)
from tickflake.kernel.time import ManualClock


def test_readme_example(clock: ManualClock, epoch_ms: int) -> None:
    MyFlake = SingleIdFlake[43, 8, 12]
    cloud = tickflake.Generator(MyFlake, epoch_ms, 1, clock=clock)

    flake = cloud.next_id()

    assert MyFlake.from_id(flake.id) == flake
    assert flake.id > 0


def test_settings_to_json_payload(clock: ManualClock) -> None:
    """Test ids flow from configured generator into a JSON payload and back"""
    settings = GeneratorSettings(segments=(2, 3), segment_bits=(4, 4), shared=True)
    cloud = settings.build(clock=clock)
    flake_type = settings.flake_type()

    class Event(BaseModel):
        id: StringId[flake_type]  # type: ignore[valid-type]

    event = Event(id=blocking_next_id(cloud, settings.wait_attempts))
    payload = json.loads(event.model_dump_json())

    assert isinstance(payload["id"], str)
    restored = Event.model_validate(payload)
    assert restored.id == event.id
    assert isinstance(restored.id, DualIdFlake)
    assert (restored.id.primary_id, restored.id.secondary_id) == (2, 3)


def test_version() -> None:
    assert tickflake.__version__ == "0.1.0"
