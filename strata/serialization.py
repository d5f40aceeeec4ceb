##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Serialization adapters for Strata repositories.

A repository never inspects the entities it stores. It is handed a
[`Serializer`][serialization.Serializer] (a `serialize`/`deserialize` pair)
and a [`SerializationMode`][serialization.SerializationMode], and the
[`WireCodec`][serialization.WireCodec] defined here glues the two together:
it normalizes whatever the Redis client returns into the mode's wire type
before handing it to the deserializer, and it owns the single emptiness check
used to tell "absent" apart from "present".

The shape of the serializer depends on the storage strategy:

- Scalar (`T -> str | bytes`) for the value-per-entity and value-in-shared-hash strategies.
- Field-map (`T -> Dict[str | bytes, str | bytes]`) for the hash-per-entity strategy.

Ready-made serializers are provided for dataclass entities.
"""

import json
import logging
from dataclasses import dataclass, fields, is_dataclass
from datetime import datetime
from enum import Enum
from types import UnionType
from typing import Any, Callable, Dict, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from strata.exceptions import InvalidArgumentError, RepositoryConfigurationError


T = TypeVar("T")

LOG = logging.getLogger(__name__)

# Markers used by the dataclass serializers
NULL = "null"
ESCAPE = "\\"
SET_TAG = "__set__"

WireValue = Union[str, bytes]
WireMap = Dict[WireValue, WireValue]


class SerializationMode(Enum):
    """
    The wire type a repository exchanges with Redis.

    Attributes:
        TEXT: Values (and hash fields) are `str`.
        BINARY: Values (and hash fields) are `bytes`.
    """

    TEXT = "text"
    BINARY = "binary"

    @classmethod
    def from_value(cls, value: Union[str, "SerializationMode"]) -> "SerializationMode":
        """
        Resolve a mode from an enum member or its (case-insensitive) name/value.

        Args:
            value: The mode, or a string like "text" or "BINARY".

        Returns:
            The matching `SerializationMode`.

        Raises:
            RepositoryConfigurationError: If `value` does not name a mode.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for mode in cls:
                if value.strip().lower() == mode.value:
                    return mode
        raise RepositoryConfigurationError(
            f"Unknown serialization mode '{value}'. Expected one of: {', '.join(mode.value for mode in cls)}"
        )


@dataclass
class Serializer:
    """
    The caller-supplied conversion pair for one entity type.

    Attributes:
        serialize: Converts an entity into its wire form.
        deserialize: Converts a wire form back into an entity.
    """

    serialize: Callable[[Any], Any]
    deserialize: Callable[[Any], Any]

    def __post_init__(self):
        if not callable(self.serialize):
            raise RepositoryConfigurationError("serializer.serialize must be callable!")
        if not callable(self.deserialize):
            raise RepositoryConfigurationError("serializer.deserialize must be callable!")


def is_absent(wire: Any) -> bool:
    """
    Determine whether a value returned by Redis means "nothing stored".

    Args:
        wire: A scalar or a map returned by the Redis client.

    Returns:
        True if `wire` is None, an empty string/bytes, or an empty map.
    """
    if wire is None:
        return True
    if isinstance(wire, (str, bytes, dict)):
        return len(wire) == 0
    return False


class WireCodec:
    """
    Normalizes wire values to the configured mode and applies the serializer.

    Attributes:
        serializer (Serializer): The caller-supplied conversion pair.
        mode (SerializationMode): The wire type exchanged with Redis.

    Methods:
        normalize: Convert a single wire value to the mode's wire type.
        encode: Serialize a scalar entity.
        decode: Deserialize a scalar wire value, or return None if absent.
        encode_map: Serialize an entity into a field-map.
        decode_map: Deserialize a field-map, or return None if absent.
    """

    def __init__(self, serializer: Serializer, mode: SerializationMode = SerializationMode.TEXT):
        """
        Args:
            serializer: The caller-supplied conversion pair.
            mode: The wire type exchanged with Redis.
        """
        if not isinstance(serializer, Serializer):
            raise RepositoryConfigurationError("A Serializer is required to build a repository.")
        self.serializer = serializer
        self.mode = SerializationMode.from_value(mode)

    def normalize(self, value: Any) -> Any:
        """
        Convert a wire value to the type the configured mode expects.

        Args:
            value: A `str` or `bytes` value. Anything else is returned untouched.

        Returns:
            `str` in TEXT mode, `bytes` in BINARY mode.
        """
        if self.mode is SerializationMode.TEXT and isinstance(value, bytes):
            return value.decode("utf-8")
        if self.mode is SerializationMode.BINARY and isinstance(value, str):
            return value.encode("utf-8")
        return value

    def encode(self, entity: T) -> WireValue:
        """Serialize a scalar entity into the mode's wire type."""
        if entity is None:
            raise InvalidArgumentError("entity cannot be null!")
        return self.normalize(self.serializer.serialize(entity))

    def decode(self, wire: Any) -> T:
        """Deserialize a scalar wire value, returning None when nothing is stored."""
        if is_absent(wire):
            return None
        return self.serializer.deserialize(self.normalize(wire))

    def encode_map(self, entity: T) -> WireMap:
        """
        Serialize an entity into a field-map.

        Raises:
            InvalidArgumentError: If the entity is None or serializes to an empty map.
        """
        if entity is None:
            raise InvalidArgumentError("entity cannot be null!")
        mapping = self.serializer.serialize(entity)
        if not mapping:
            raise InvalidArgumentError("entity cannot serialize to an empty field map!")
        return {self.normalize(field): self.normalize(value) for field, value in mapping.items()}

    def decode_map(self, wire: Any) -> T:
        """Deserialize a field-map, returning None when nothing is stored."""
        if is_absent(wire):
            return None
        return self.serializer.deserialize({self.normalize(field): self.normalize(value) for field, value in wire.items()})


#######################################
# Ready-made dataclass serializers
#######################################


def _check_model_class(model_class: Type[T]):
    """
    Ensure the model class is a dataclass type.

    Raises:
        RepositoryConfigurationError: If `model_class` is not a dataclass type.
    """
    if not (isinstance(model_class, type) and is_dataclass(model_class)):
        raise RepositoryConfigurationError(f"{model_class} must be a dataclass type.")


def _is_dataclass_instance(value: Any) -> bool:
    return is_dataclass(value) and not isinstance(value, type)


def _unwrap_optional(field_type: Any) -> Any:
    """Turn `Optional[X]` (or `X | None`) into `X`; leave every other type alone."""
    if get_origin(field_type) in (Union, UnionType):
        args = [arg for arg in get_args(field_type) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return field_type


def _base_type(field_type: Any) -> Any:
    field_type = _unwrap_optional(field_type)
    return get_origin(field_type) or field_type


def _escape(value: str) -> str:
    """Prefix strings that would otherwise read back as None or lose a leading escape."""
    if value == NULL or value.startswith(ESCAPE):
        return ESCAPE + value
    return value


def _unescape(raw: str) -> str:
    return raw[len(ESCAPE) :] if raw.startswith(ESCAPE) else raw


def _encode_field(value: Any) -> str:
    """
    Convert one dataclass field value into a hash field value.

    Args:
        value: The value of the field.

    Returns:
        The string stored in Redis for this field.
    """
    if value is None:
        return NULL
    if isinstance(value, str):
        return _escape(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple, dict, set, frozenset)) or _is_dataclass_instance(value):
        return json.dumps(_to_json_compatible(value))
    return str(value)


def _decode_field(raw: str, field_type: Any) -> Any:
    """
    Convert one hash field value back into a value of the declared field type.

    Args:
        raw: The string stored in Redis.
        field_type: The annotation of the dataclass field.

    Returns:
        The decoded value.
    """
    if raw == NULL:
        return None

    base = _base_type(field_type)
    if base in (list, tuple, dict, set, frozenset) or (isinstance(base, type) and is_dataclass(base)):
        return _from_json_compatible(json.loads(raw), field_type)
    if base is datetime:
        return datetime.fromisoformat(raw)
    if base is bool:
        return raw == "True"
    if base is int:
        return int(raw)
    if base is float:
        return float(raw)
    return _unescape(raw)


def _to_json_compatible(value: Any) -> Any:
    if _is_dataclass_instance(value):
        return {field.name: _to_json_compatible(getattr(value, field.name)) for field in fields(value)}
    if isinstance(value, (set, frozenset)):
        # Explicitly mark this as a set so we can properly deserialize it later
        return {SET_TAG: [_to_json_compatible(val) for val in value]}
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _to_json_compatible(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json_compatible(val) for val in value]
    return value


def _tuple_item_types(args: tuple, length: int) -> list:
    if len(args) == 2 and args[1] is Ellipsis:
        return [args[0]] * length
    if len(args) == length:
        return list(args)
    return [Any] * length


def _from_json_compatible(value: Any, field_type: Any) -> Any:
    """
    Rebuild a value decoded from JSON according to its declared type.

    Args:
        value: The value produced by `json.loads`.
        field_type: The annotation the value was declared with.

    Returns:
        The value with its sets, tuples, datetimes, and nested dataclasses restored.
    """
    if value is None:
        return None
    field_type = _unwrap_optional(field_type)
    base = get_origin(field_type) or field_type
    args = get_args(field_type)

    if isinstance(value, dict) and set(value) == {SET_TAG}:
        item_type = args[0] if base in (set, frozenset) and args else Any
        items = [_from_json_compatible(item, item_type) for item in value[SET_TAG]]
        return frozenset(items) if base is frozenset else set(items)
    if isinstance(base, type) and is_dataclass(base) and isinstance(value, dict):
        return _build_entity(base, value, _from_json_compatible)
    if base is datetime and isinstance(value, str):
        return datetime.fromisoformat(value)
    if base is tuple and isinstance(value, list):
        item_types = _tuple_item_types(args, len(value))
        return tuple(_from_json_compatible(item, item_type) for item, item_type in zip(value, item_types))
    if base in (list, set, frozenset) and isinstance(value, list):
        item_type = args[0] if args else Any
        items = [_from_json_compatible(item, item_type) for item in value]
        return items if base is list else base(items)
    if base is dict and isinstance(value, dict):
        value_type = args[1] if len(args) == 2 else Any
        return {key: _from_json_compatible(val, value_type) for key, val in value.items()}
    return value


def _build_entity(model_class: Type[T], data: Dict[str, Any], decoder: Callable[[Any, Any], Any]) -> T:
    """
    Instantiate a dataclass from decoded data, ignoring keys it does not declare.
    """
    hints = get_type_hints(model_class)
    kwargs = {}
    for field in fields(model_class):
        if field.name in data:
            kwargs[field.name] = decoder(data[field.name], hints.get(field.name, Any))
    return model_class(**kwargs)


def json_serializer(model_class: Type[T]) -> Serializer:
    """
    Build a scalar TEXT serializer that stores a dataclass as a JSON document.

    Sets are tagged so they survive the round trip, and datetimes are stored
    in ISO 8601 format. Tuples and nested dataclasses are rebuilt from the
    field annotations.

    Args:
        model_class: The dataclass type of the entities.

    Returns:
        A [`Serializer`][serialization.Serializer] producing `str` values.
    """
    _check_model_class(model_class)

    def serialize(entity: T) -> str:
        return json.dumps(_to_json_compatible(entity), sort_keys=True)

    def deserialize(value: str) -> T:
        return _build_entity(model_class, json.loads(value), _from_json_compatible)

    return Serializer(serialize=serialize, deserialize=deserialize)


def json_binary_serializer(model_class: Type[T]) -> Serializer:
    """
    Build a scalar BINARY serializer that stores a dataclass as a utf-8 encoded JSON document.

    Args:
        model_class: The dataclass type of the entities.

    Returns:
        A [`Serializer`][serialization.Serializer] producing `bytes` values.
    """
    text = json_serializer(model_class)

    def serialize(entity: T) -> bytes:
        return text.serialize(entity).encode("utf-8")

    def deserialize(value: bytes) -> T:
        return text.deserialize(value.decode("utf-8"))

    return Serializer(serialize=serialize, deserialize=deserialize)


def hash_serializer(model_class: Type[T]) -> Serializer:
    """
    Build a field-map TEXT serializer that stores one hash field per dataclass field.

    Containers and nested dataclasses are stored as JSON, datetimes in ISO 8601
    format, and `None` as the string "null". A string that equals "null" or
    starts with a backslash is stored with an extra leading backslash. Values
    are decoded back according to the annotation of each field.

    Args:
        model_class: The dataclass type of the entities.

    Returns:
        A [`Serializer`][serialization.Serializer] producing `Dict[str, str]` values.
    """
    _check_model_class(model_class)

    def serialize(entity: T) -> Dict[str, str]:
        LOG.debug("Serializing data...")
        serialized_data = {field.name: _encode_field(getattr(entity, field.name)) for field in fields(entity)}
        LOG.debug("Successfully serialized data.")
        return serialized_data

    def deserialize(data: Dict[str, str]) -> T:
        LOG.debug("Deserializing data...")
        entity = _build_entity(model_class, data, _decode_field)
        LOG.debug("Successfully deserialized data.")
        return entity

    return Serializer(serialize=serialize, deserialize=deserialize)
