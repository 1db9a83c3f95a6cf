"""Map Python annotations onto engine type descriptors."""

from __future__ import annotations

import asyncio
import collections.abc
import decimal
import enum
import inspect
import types
import typing
from typing import Annotated, Any, Union, get_args, get_origin

from dagmod.decorator import get_enum_meta, get_object_meta
from dagmod.errors import UnsupportedTypeError
from dagmod.schema.types import AsyncShape, ReturnShape, TypeDefKind, TypeDescriptor
from dagmod.types import JSON, RemoteObject, Scalar

__all__ = [
    "map_type",
    "split_optional",
    "strip_annotated",
    "unwrap_return",
    "list_element",
    "is_list_like",
    "enum_exposed_name",
    "object_exposed_name",
    "type_repr",
]

_NONE_TYPE = type(None)

_LIST_ORIGINS: frozenset[Any] = frozenset(
    {
        list,
        tuple,
        set,
        frozenset,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Iterable,
        collections.abc.Collection,
        collections.abc.Set,
        collections.abc.MutableSet,
    }
)

_MAPPING_ORIGINS: frozenset[Any] = frozenset(
    {dict, collections.abc.Mapping, collections.abc.MutableMapping}
)

_AWAITABLE_ORIGINS: frozenset[Any] = frozenset(
    {collections.abc.Awaitable, collections.abc.Coroutine, asyncio.Future}
)


def type_repr(annotation: Any) -> str:
    """Human readable name of an annotation for error messages."""
    if isinstance(annotation, type) and get_origin(annotation) is None:
        return f"{annotation.__module__}.{annotation.__qualname__}"
    return repr(annotation)


def strip_annotated(annotation: Any) -> Any:
    """Remove ``Annotated[...]`` wrappers, keeping the underlying type."""
    while get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    return annotation


def split_optional(annotation: Any) -> tuple[Any, bool]:
    """Split ``Optional[T]`` / ``T | None`` into ``(T, True)``.

    Non-optional annotations come back unchanged with ``False``. A union of
    several non-None members keeps its remaining members.
    """
    annotation = strip_annotated(annotation)
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = get_args(annotation)
        members = [a for a in args if a is not _NONE_TYPE]
        if len(members) == len(args):
            return annotation, False
        if len(members) == 1:
            return strip_annotated(members[0]), True
        return Union[tuple(members)], True
    return annotation, False


def is_list_like(annotation: Any) -> bool:
    return get_origin(annotation) in _LIST_ORIGINS


def list_element(annotation: Any) -> Any:
    """Return the element annotation of a list-like annotation."""
    origin = get_origin(annotation)
    args = get_args(annotation)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
        raise UnsupportedTypeError(type_repr(annotation))
    if len(args) != 1:
        raise UnsupportedTypeError(type_repr(annotation))
    return args[0]


def enum_exposed_name(cls: type[enum.Enum]) -> str:
    meta = get_enum_meta(cls)
    return (meta.name if meta is not None and meta.name else None) or cls.__name__


def object_exposed_name(cls: type) -> str:
    meta = get_object_meta(cls)
    return (meta.name if meta is not None and meta.name else None) or cls.__name__


def map_type(annotation: Any) -> tuple[TypeDescriptor, bool]:
    """Map an annotation to ``(descriptor, nullable)``.

    Nullability is unwrapped first and carried on the returned descriptor.
    ``None`` maps to the void kind, which is always optional.

    Raises:
        UnsupportedTypeError: When the annotation has no engine representation.
    """
    inner, nullable = split_optional(annotation)
    if inner is None or inner is _NONE_TYPE:
        return TypeDescriptor(TypeDefKind.VOID, optional=True), True
    return _map_inner(inner).with_optional(nullable), nullable


def _map_inner(tp: Any) -> TypeDescriptor:
    origin = get_origin(tp)
    if origin is not None:
        if origin in _LIST_ORIGINS:
            element, _ = map_type(list_element(tp))
            # element nullability is not representable
            return TypeDescriptor(TypeDefKind.LIST, element=element.with_optional(False))
        if origin in _MAPPING_ORIGINS:
            return TypeDescriptor(TypeDefKind.SCALAR)
        raise UnsupportedTypeError(type_repr(tp))

    if not isinstance(tp, type):
        raise UnsupportedTypeError(type_repr(tp))

    # IntEnum and StrEnum are also int and str; check enums first
    if issubclass(tp, enum.Enum):
        return TypeDescriptor(TypeDefKind.ENUM, name=enum_exposed_name(tp))
    if tp is bool:
        return TypeDescriptor(TypeDefKind.BOOLEAN)
    if tp is int:
        return TypeDescriptor(TypeDefKind.INTEGER)
    if tp is float or tp is decimal.Decimal:
        return TypeDescriptor(TypeDefKind.FLOAT)
    if tp is str:
        return TypeDescriptor(TypeDefKind.STRING)
    if issubclass(tp, Scalar):
        return TypeDescriptor(TypeDefKind.SCALAR)
    if issubclass(tp, RemoteObject):
        return TypeDescriptor(TypeDefKind.OBJECT, name=tp.__name__)
    if get_object_meta(tp) is not None:
        return TypeDescriptor(TypeDefKind.OBJECT, name=object_exposed_name(tp))
    if tp is JSON or issubclass(tp, dict):
        return TypeDescriptor(TypeDefKind.SCALAR)
    raise UnsupportedTypeError(type_repr(tp))


def unwrap_return(func: Any, annotation: Any) -> ReturnShape:
    """Resolve the async shape and inner return annotation of ``func``.

    ``async def`` functions produce their annotation through a coroutine.
    Plain functions annotated with ``Awaitable[T]``, ``Coroutine[..., T]``
    or ``asyncio.Future[T]`` produce ``T`` through an awaitable.
    """
    shape = AsyncShape.COROUTINE if inspect.iscoroutinefunction(func) else AsyncShape.SYNC
    inner = strip_annotated(annotation)

    if shape is AsyncShape.SYNC:
        origin = get_origin(inner)
        if inner in _AWAITABLE_ORIGINS or inner is typing.Awaitable:
            return ReturnShape(annotation=None, returns_void=True, async_shape=AsyncShape.AWAITABLE)
        if origin in _AWAITABLE_ORIGINS:
            args = get_args(inner)
            result = args[-1] if args else None
            return ReturnShape(
                annotation=result,
                returns_void=result is None or result is _NONE_TYPE,
                async_shape=AsyncShape.AWAITABLE,
            )

    return ReturnShape(
        annotation=annotation,
        returns_void=inner is None or inner is _NONE_TYPE,
        async_shape=shape,
    )
