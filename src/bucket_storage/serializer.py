"""Serialization of Python values stored as objects."""

from typing import Any, Optional, Protocol

from pydantic import TypeAdapter
from pydantic_core import from_json, to_json


class Serializer(Protocol):
    """Converts values to and from stored bytes."""

    def serialize(self, value: Any) -> bytes: ...

    def deserialize(self, data: bytes, type_: Optional[type] = None) -> Any: ...


class JsonSerializer:
    """JSON serializer backed by pydantic.

    Pydantic models, dataclasses and datetimes serialize without extra
    hooks; passing ``type_`` to ``deserialize`` validates into that type.
    """

    def serialize(self, value: Any) -> bytes:
        return to_json(value)

    def deserialize(self, data: bytes, type_: Optional[type] = None) -> Any:
        if type_ is None:
            return from_json(data)
        return TypeAdapter(type_).validate_json(data)
