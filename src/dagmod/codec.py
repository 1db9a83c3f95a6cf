"""Conversion between JSON wire values and Python values."""

from __future__ import annotations

import collections.abc
import decimal
import enum
import inspect
import json
import logging
import sys
from typing import Any, Awaitable, Callable, get_origin

from pydantic import BaseModel, PydanticUserError, TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from dagmod.decorator import FieldDescriptor, get_enum_meta, get_object_meta, is_ignored
from dagmod.errors import DecodeError, IdTypeNotFoundError, LoaderNotFoundError
from dagmod.schema.mapper import is_list_like, list_element, split_optional, type_repr
from dagmod.types import JSON, RemoteObject, Scalar
from dagmod.utils.naming import to_camel_case, to_snake_case

logger = logging.getLogger(__name__)

__all__ = ["Codec", "ObjectFactory", "exposed_fields"]

ObjectFactory = Callable[[type, Any], Awaitable[Any]]

_ZERO_VALUES: dict[Any, Callable[[], Any]] = {
    int: int,
    float: float,
    bool: bool,
    decimal.Decimal: decimal.Decimal,
}


def exposed_fields(cls: type) -> list[tuple[str, str]]:
    """Return ``(attr_name, wire_name)`` for each exposed field of a class.

    Only annotated, non-ignored ``field()`` descriptors count, the same
    members discovery registers with the engine.
    """
    members: dict[str, Any] = {}
    annotated: set[str] = set()
    for klass in reversed(cls.__mro__):
        members.update(vars(klass))
        annotated.update(inspect.get_annotations(klass))
    return [
        (name, to_camel_case(attr.name or name))
        for name, attr in members.items()
        if isinstance(attr, FieldDescriptor) and name in annotated and not is_ignored(attr)
    ]


class Codec:
    """Decodes call arguments and encodes results.

    Remote objects travel by ID: decoding loads them through the client's
    ``load_<type>_from_id`` accessor, encoding resolves their ``id()``.
    Values of ``@object_type`` classes are encoded structurally from their
    exposed fields and decoded through ``object_factory``.
    """

    def __init__(self, client: Any, object_factory: ObjectFactory | None = None) -> None:
        self._client = client
        self._object_factory = object_factory
        self._fields: dict[type, list[tuple[str, str]]] = {}

    # ----- Decoding -----

    async def decode(self, wire: Any, target: Any) -> Any:
        """Convert a decoded JSON value into an instance of ``target``.

        Raises:
            DecodeError: If the value does not fit the target type.
            LoaderNotFoundError: If a remote object type has no loader on the client.
            IdTypeNotFoundError: If a remote object type has no ID scalar.
        """
        inner, nullable = split_optional(target)
        if wire is None:
            zero = _ZERO_VALUES.get(inner)
            if zero is not None and not nullable:
                return zero()
            return None
        return await self._decode_value(wire, inner)

    async def _decode_value(self, wire: Any, target: Any) -> Any:
        if isinstance(target, type) and get_origin(target) is None:
            if issubclass(target, enum.Enum):
                return self._decode_enum(wire, target)
            if target is bool:
                if isinstance(wire, bool):
                    return wire
                raise self._mismatch(wire, target)
            if target is int:
                return self._decode_int(wire)
            if target is float:
                if isinstance(wire, (int, float)) and not isinstance(wire, bool):
                    return float(wire)
                raise self._mismatch(wire, target)
            if target is decimal.Decimal:
                return self._decode_decimal(wire)
            if target is str:
                if isinstance(wire, str):
                    return wire
                raise self._mismatch(wire, target)
            if issubclass(target, Scalar):
                return target(wire if isinstance(wire, str) else json.dumps(wire))
            if issubclass(target, RemoteObject):
                return await self._decode_remote(wire, target)
            if target is JSON:
                return JSON(wire)
            if get_object_meta(target) is not None:
                return await self._decode_object(wire, target)

        if is_list_like(target):
            return await self._decode_list(wire, target)
        # mappings and anything else go through pydantic
        return self._validate(wire, target)

    @staticmethod
    def _mismatch(wire: Any, target: Any) -> DecodeError:
        return DecodeError(
            f"Cannot convert {type(wire).__name__} value {wire!r} to '{type_repr(target)}'.",
            target=type_repr(target),
        )

    def _decode_int(self, wire: Any) -> int:
        if isinstance(wire, bool):
            raise self._mismatch(wire, int)
        if isinstance(wire, int):
            return wire
        if isinstance(wire, float) and wire.is_integer():
            return int(wire)
        raise self._mismatch(wire, int)

    def _decode_decimal(self, wire: Any) -> decimal.Decimal:
        if isinstance(wire, bool) or not isinstance(wire, (int, float, str)):
            raise self._mismatch(wire, decimal.Decimal)
        try:
            return decimal.Decimal(str(wire))
        except decimal.InvalidOperation as exc:
            raise self._mismatch(wire, decimal.Decimal) from exc

    @staticmethod
    def _decode_enum(wire: Any, target: type[enum.Enum]) -> enum.Enum:
        if isinstance(wire, str):
            members = target.__members__
            if wire in members:
                return members[wire]
            lowered = wire.casefold()
            for name, member in members.items():
                if name.casefold() == lowered:
                    return member
            meta = get_enum_meta(target)
            if meta is not None:
                for name, value_meta in meta.values.items():
                    if value_meta.value is not None and value_meta.value.casefold() == lowered:
                        return members[name]
        raise DecodeError(
            f"Unknown value '{wire}' for enum '{target.__name__}'.",
            target=type_repr(target),
        )

    async def _decode_remote(self, wire: Any, target: type[RemoteObject]) -> RemoteObject | None:
        ident = wire.get("id") if isinstance(wire, dict) else wire
        if ident is None or ident == "":
            return None
        if not isinstance(ident, str):
            raise self._mismatch(wire, target)

        loader = getattr(self._client, f"load_{to_snake_case(target.__name__)}_from_id", None)
        if loader is None:
            raise LoaderNotFoundError(target.__name__)

        id_type = getattr(sys.modules.get(target.__module__), f"{target.__name__}ID", None)
        if not (isinstance(id_type, type) and issubclass(id_type, Scalar)):
            raise IdTypeNotFoundError(target.__name__)

        logger.debug("Loading %s from id %s", target.__name__, ident)
        result = loader(id_type(ident))
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _decode_object(self, wire: Any, target: type) -> Any:
        if self._object_factory is None:
            raise DecodeError(f"Cannot decode object '{target.__name__}' without an object factory.")
        if not isinstance(wire, dict):
            raise self._mismatch(wire, target)
        return await self._object_factory(target, wire)

    async def _decode_list(self, wire: Any, target: Any) -> Any:
        if not isinstance(wire, list):
            raise self._mismatch(wire, target)
        element = list_element(target)
        items = [await self.decode(item, element) for item in wire]
        origin = get_origin(target)
        if origin is tuple:
            return tuple(items)
        if origin is frozenset:
            return frozenset(items)
        if origin in (set, collections.abc.Set, collections.abc.MutableSet):
            return set(items)
        return items

    @staticmethod
    def _validate(wire: Any, target: Any) -> Any:
        try:
            return TypeAdapter(target).validate_python(wire)
        except ValidationError as exc:
            raise DecodeError(
                f"Cannot convert value to '{type_repr(target)}': {exc.errors()[0]['msg']}",
                target=type_repr(target),
                cause=exc,
            ) from exc
        except PydanticUserError as exc:
            raise DecodeError(
                f"Cannot convert value to '{type_repr(target)}': {exc}",
                target=type_repr(target),
                cause=exc,
            ) from exc

    # ----- Encoding -----

    async def encode(self, value: Any) -> Any:
        """Convert a Python value into a JSON-compatible wire value."""
        if value is None:
            return None
        if isinstance(value, enum.Enum):
            return value.name
        if isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, decimal.Decimal):
            return float(value)
        if isinstance(value, Scalar):
            return value.value
        if isinstance(value, JSON):
            return to_jsonable_python(value.value)
        if isinstance(value, collections.abc.Mapping):
            return {str(k): await self.encode(v) for k, v in value.items()}
        if isinstance(value, RemoteObject):
            ident = await value.id()
            return ident.value if isinstance(ident, Scalar) else ident
        if get_object_meta(type(value)) is not None:
            return await self.encode_object(value)
        # models iterate over (name, value) pairs
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        if isinstance(value, collections.abc.Iterable) and not isinstance(value, (bytes, bytearray)):
            return [await self.encode(item) for item in value]
        return to_jsonable_python(value)

    async def encode_object(self, value: Any, include_state: bool = False) -> dict[str, Any]:
        """Encode an ``@object_type`` instance as a map of its exposed fields.

        With ``include_state`` public instance attributes are included too,
        keyed by their camelCased names.
        """
        result: dict[str, Any] = {}
        field_attrs: set[str] = set()
        cls = type(value)
        if cls not in self._fields:
            self._fields[cls] = exposed_fields(cls)
        for attr_name, wire_name in self._fields[cls]:
            field_attrs.add(attr_name)
            result[wire_name] = await self.encode(getattr(value, attr_name, None))
        if include_state:
            for attr_name, attr_value in vars(value).items():
                if attr_name.startswith("_") or attr_name in field_attrs:
                    continue
                result.setdefault(to_camel_case(attr_name), await self.encode(attr_value))
        return result
