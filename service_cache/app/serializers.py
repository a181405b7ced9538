"""
Value serializers.

A serializer turns one value shape into bytes and back. The engine never
inspects values itself; the shape is fixed where a CacheScope is declared.
Serializers raise whatever their codec raises and the engine maps those
failures onto SerializationError / DeserializationError.
"""

import json
from typing import Any, Generic, Protocol, TypeVar

from pydantic import TypeAdapter

T = TypeVar("T")


class Serializer(Protocol[T]):
    """Encode/decode contract for cached values."""

    def dumps(self, value: T) -> bytes:
        ...

    def loads(self, data: bytes) -> T:
        ...


class JsonSerializer(Generic[T]):
    """UTF-8 JSON for plain dicts, lists and scalars."""

    def __init__(self, sort_keys: bool = False):
        self.sort_keys = sort_keys

    def dumps(self, value: T) -> bytes:
        return json.dumps(value, sort_keys=self.sort_keys, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    def loads(self, data: bytes) -> T:
        return json.loads(data.decode("utf-8"))


class ModelSerializer(Generic[T]):
    """JSON validated against a pydantic model or any type pydantic understands.

    Stored payloads that no longer match the declared shape fail validation
    on load instead of leaking partially-built objects to callers.
    """

    def __init__(self, value_type: Any):
        self.value_type = value_type
        self._adapter: TypeAdapter = TypeAdapter(value_type)

    def dumps(self, value: T) -> bytes:
        return self._adapter.dump_json(value)

    def loads(self, data: bytes) -> T:
        return self._adapter.validate_json(data)
