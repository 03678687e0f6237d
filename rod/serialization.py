"""JSON serialization of stored values."""

import dataclasses
from datetime import datetime
from enum import Enum
import json
import types
import typing
from typing import Any, Dict, Optional, Union

from .exceptions import SerializationError

_UNION_TYPES = tuple(
    t for t in (Union, getattr(types, "UnionType", None)) if t is not None
)


class Serializer:
    """Encode values to JSON bytes and decode them back.

    Encoding understands plain JSON types, dataclasses, enums, datetimes,
    and objects with a ``__dict__``. Decoding can build or fill in a target:

    - ``None``: return the plain decoded value
    - a class: build a new instance (dataclasses are built field by field,
      nested dataclasses included; other classes are created with no
      arguments and given the JSON object's attributes, or called with
      the value when it isn't an object)
    - an instance: fill it in place (dataclass attributes, dict items, list
      contents, or plain attributes) and return it

    Example:
        serializer = Serializer()

        raw = serializer.encode(Animal(type="dog", name="rover"))
        # b'{"type":"dog","name":"rover"}'

        dog = serializer.decode(raw, Animal)
    """

    def encode(self, value: Any) -> bytes:
        """Serialize value to UTF-8 JSON bytes.

        Raises:
            SerializationError: If the value can't be represented as JSON
        """
        try:
            data = self._to_json_compatible(value)
            return json.dumps(
                data, ensure_ascii=False, allow_nan=False, separators=(",", ":")
            ).encode("utf-8")
        except SerializationError:
            raise
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Failed to serialize {type(value).__name__}: {e}"
            ) from e

    def decode(self, raw: bytes, target: Any = None) -> Any:
        """Deserialize JSON bytes, optionally into target.

        Raises:
            SerializationError: If raw isn't valid JSON or doesn't fit target
        """
        try:
            data = self._from_json_compatible(json.loads(raw))
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to deserialize value: {e}") from e

        if target is None:
            return data
        try:
            if typing.get_origin(target) is not None:
                return self._convert(data, target)
            if isinstance(target, type):
                return self._build(target, data)
            return self._fill(target, data)
        except (TypeError, ValueError) as e:
            name = getattr(target, "__name__", type(target).__name__)
            raise SerializationError(f"Failed to deserialize {name}: {e}") from e

    def _build(self, cls: type, data: Any) -> Any:
        """Create a new instance of cls from decoded JSON."""
        if dataclasses.is_dataclass(cls):
            if not isinstance(data, dict):
                raise SerializationError(
                    f"Cannot decode {type(data).__name__} into {cls.__name__}"
                )
            hints = self._field_types(cls)
            kwargs = {}
            for f in dataclasses.fields(cls):
                if f.init and f.name in data:
                    kwargs[f.name] = self._convert(data[f.name], hints.get(f.name))
            return cls(**kwargs)
        if isinstance(data, dict) and cls.__module__ != "builtins":
            # plain class: create a blank and set the attributes encode() wrote
            return self._fill(cls(), data)
        return cls(data)

    def _fill(self, target: Any, data: Any) -> Any:
        """Decode data into an existing object."""
        if dataclasses.is_dataclass(target) and isinstance(data, dict):
            hints = self._field_types(type(target))
            for f in dataclasses.fields(target):
                if f.name in data:
                    setattr(target, f.name, self._convert(data[f.name], hints.get(f.name)))
            return target
        if isinstance(target, dict) and isinstance(data, dict):
            target.update(data)
            return target
        if isinstance(target, list) and isinstance(data, list):
            target[:] = data
            return target
        if hasattr(target, "__dict__") and isinstance(data, dict):
            for name, value in data.items():
                setattr(target, name, value)
            return target
        raise SerializationError(
            f"Cannot decode {type(data).__name__} into {type(target).__name__}"
        )

    def _field_types(self, cls: type) -> Dict[str, Any]:
        try:
            return typing.get_type_hints(cls)
        except (NameError, TypeError):
            return {f.name: f.type for f in dataclasses.fields(cls)}

    def _convert(self, value: Any, hint: Optional[Any]) -> Any:
        """Convert a decoded value to match a field's type hint."""
        if value is None or hint is None:
            return value
        if isinstance(hint, type) and dataclasses.is_dataclass(hint):
            return self._build(hint, value)
        if isinstance(hint, type) and issubclass(hint, Enum):
            return hint(value)
        if hint is datetime and isinstance(value, str):
            return datetime.fromisoformat(value)

        origin = typing.get_origin(hint)
        args = typing.get_args(hint)
        if origin in _UNION_TYPES:
            # Optional[X]: convert with the first non-None member
            for arg in args:
                if arg is not type(None):
                    return self._convert(value, arg)
        if origin is list and args and isinstance(value, list):
            return [self._convert(v, args[0]) for v in value]
        if origin is dict and len(args) == 2 and isinstance(value, dict):
            return {k: self._convert(v, args[1]) for k, v in value.items()}
        return value

    def _to_json_compatible(self, value: Any) -> Any:
        """Convert a value to JSON-compatible format."""
        if value is None:
            return None
        if isinstance(value, Enum):
            return self._to_json_compatible(value.value)
        if isinstance(value, (str, int, float, bool)):
            return value
        if isinstance(value, datetime):
            return {"__datetime__": value.isoformat()}
        if isinstance(value, (list, tuple)):
            return [self._to_json_compatible(v) for v in value]
        if isinstance(value, dict):
            return {k: self._to_json_compatible(v) for k, v in value.items()}
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {
                f.name: self._to_json_compatible(getattr(value, f.name))
                for f in dataclasses.fields(value)
            }
        if isinstance(value, (bytes, bytearray)):
            raise SerializationError(
                "Cannot serialize bytes as JSON. Use rod.put() for raw values."
            )
        if hasattr(value, "__dict__"):
            return self._to_json_compatible(vars(value))
        raise SerializationError(f"Cannot serialize type: {type(value)}")

    def _from_json_compatible(self, value: Any) -> Any:
        """Convert a value from JSON-compatible format."""
        if isinstance(value, list):
            return [self._from_json_compatible(v) for v in value]
        if isinstance(value, dict):
            if set(value) == {"__datetime__"}:
                return datetime.fromisoformat(value["__datetime__"])
            return {k: self._from_json_compatible(v) for k, v in value.items()}
        return value


_default = Serializer()


def encode(value: Any) -> bytes:
    """Serialize value to JSON bytes with the default Serializer."""
    return _default.encode(value)


def decode(raw: bytes, target: Any = None) -> Any:
    """Deserialize JSON bytes with the default Serializer."""
    return _default.decode(raw, target)
