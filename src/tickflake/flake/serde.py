"""
Serialization adapters for embedding flakes in other pydantic models

By default a flake dumps as its fields. These annotations make a field
dump as the packed integer (IntId) or as its base-10 string (StringId) -
the latter for JSON consumers such as JavaScript that cannot hold 64 bit
integers losslessly.

    class Post(BaseModel):
        id: StringId[MyFlake]

Both accept a flake instance, an integer or a base-10 string on input.
"""

from typing import Annotated, Any

from pydantic import PlainSerializer, PlainValidator

from tickflake.flake.models import Flake
from tickflake.kernel.errors import CodecError


def _validator(flake_type: type[Flake]) -> PlainValidator:
    def validate(value: Any) -> Flake:
        if isinstance(value, flake_type):
            return value
        try:
            if isinstance(value, str):
                return flake_type.from_string(value)
            if isinstance(value, int) and not isinstance(value, bool):
                return flake_type.from_id(value)
        except CodecError as exc:
            # ValueError so pydantic reports it as a ValidationError
            raise ValueError(str(exc)) from exc
        raise ValueError(f"cannot convert {type(value).__name__} to {flake_type.__name__}")

    return PlainValidator(validate)


class IntId:
    """Annotated flake field that serializes as the packed integer"""

    def __class_getitem__(cls, flake_type: type[Flake]) -> Any:
        return Annotated[
            flake_type,
            _validator(flake_type),
            PlainSerializer(lambda flake: flake.id, return_type=int),
        ]


class StringId:
    """Annotated flake field that serializes as a base-10 string"""

    def __class_getitem__(cls, flake_type: type[Flake]) -> Any:
        return Annotated[
            flake_type,
            _validator(flake_type),
            PlainSerializer(lambda flake: flake.to_string(), return_type=str),
        ]
