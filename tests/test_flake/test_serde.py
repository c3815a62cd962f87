"""
Tests for IntId / StringId pydantic field adapters
"""

import pytest
from pydantic import BaseModel, ValidationError

from helpers import NodeFlake
from tickflake.flake.serde import IntId, StringId


class Post(BaseModel):
    id: StringId[NodeFlake]
    parent: IntId[NodeFlake] | None = None


def test_string_id_dumps_as_text() -> None:
    """Test StringId keeps 64 bit ids lossless for JSON consumers"""
    flake = NodeFlake.from_parts(1, 1, 1)

    post = Post(id=flake)

    assert post.model_dump() == {"id": "1052673", "parent": None}
    assert post.model_dump_json() == '{"id":"1052673","parent":null}'


def test_int_id_dumps_as_integer() -> None:
    parent = NodeFlake.from_parts(2, 1, 1)

    post = Post(id=NodeFlake.from_parts(3, 1, 1), parent=parent)

    assert post.model_dump()["parent"] == parent.id


def test_accepts_int_and_string_input() -> None:
    """Test both adapters decode either representation"""
    post = Post.model_validate({"id": 1_052_673, "parent": "1052673"})

    assert post.id == NodeFlake.from_parts(1, 1, 1)
    assert post.parent == NodeFlake.from_parts(1, 1, 1)


def test_json_round_trip() -> None:
    post = Post(id=NodeFlake.from_parts(86_400_000, 7, 42))

    assert Post.model_validate_json(post.model_dump_json()) == post


@pytest.mark.parametrize("value", ["abc", -1, 2**63, 1.5, True])
def test_invalid_input_is_a_validation_error(value: object) -> None:
    with pytest.raises(ValidationError):
        Post(id=value)
