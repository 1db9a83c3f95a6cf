"""Exposure markers: object, function, field, enum and argument metadata."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field as dc_field
from typing import Any, Callable

__all__ = [
    "Arg",
    "EnumMeta",
    "EnumValueMeta",
    "FieldDescriptor",
    "FunctionMeta",
    "ObjectMeta",
    "constructor",
    "enum_type",
    "enum_value",
    "field",
    "function",
    "get_enum_meta",
    "get_function_meta",
    "get_object_meta",
    "ignore",
    "is_constructor",
    "is_ignored",
    "object_type",
]

OBJECT_ATTR = "__dagmod_object__"
FUNCTION_ATTR = "__dagmod_function__"
ENUM_ATTR = "__dagmod_enum__"
IGNORE_ATTR = "__dagmod_ignore__"
CONSTRUCTOR_ATTR = "__dagmod_constructor__"

_MISSING: Any = object()


@dataclass(frozen=True)
class ObjectMeta:
    """Metadata attached to a class by ``@object_type``."""

    name: str | None = None
    description: str | None = None
    deprecated: str | None = None
    all_functions: bool = False


@dataclass(frozen=True)
class FunctionMeta:
    """Metadata attached to a method by ``@function``."""

    name: str | None = None
    description: str | None = None
    deprecated: str | None = None
    cache: str | None = None


@dataclass(frozen=True)
class EnumValueMeta:
    """Metadata for a single enum member."""

    value: str | None = None
    description: str | None = None
    deprecated: str | None = None


@dataclass(frozen=True)
class EnumMeta:
    """Metadata attached to an enum by ``@enum_type``."""

    name: str | None = None
    description: str | None = None
    values: dict[str, EnumValueMeta] = dc_field(default_factory=dict)


@dataclass(frozen=True)
class Arg:
    """Parameter metadata, used inside ``typing.Annotated``.

    Example::

        def build(self, src: Annotated[Directory, Arg(default_path=".", ignore=["*.log"])]) -> Container:
            ...

    Attributes:
        name: Exposed name override (camelCased).
        description: Argument description; falls back to the docstring ``Args:`` entry.
        optional: Mark the argument optional even without a default or ``None`` in its type.
        default_path: Path the engine loads a directory or file argument from when omitted.
        ignore: Glob patterns the engine excludes when loading a directory argument.
        skip: Hide the parameter from the engine. It must have a default.
    """

    name: str | None = None
    description: str | None = None
    optional: bool = False
    default_path: str | None = None
    ignore: tuple[str, ...] | list[str] | None = None
    skip: bool = False


class FieldDescriptor:
    """Data descriptor backing an exposed field.

    Values are stored in the instance ``__dict__`` under the attribute name,
    so a field reads like a plain attribute once assigned.
    """

    def __init__(
        self,
        default: Any = _MISSING,
        *,
        default_factory: Callable[[], Any] | None = None,
        name: str | None = None,
        description: str | None = None,
        deprecated: str | None = None,
    ) -> None:
        if default is not _MISSING and default_factory is not None:
            raise ValueError("cannot specify both default and default_factory")
        self.default = default
        self.default_factory = default_factory
        self.name = name
        self.description = description
        self.deprecated = deprecated
        self.attr_name: str = ""

    def __set_name__(self, owner: type, attr_name: str) -> None:
        self.attr_name = attr_name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        try:
            return instance.__dict__[self.attr_name]
        except KeyError:
            pass
        if self.default_factory is not None:
            value = self.default_factory()
            instance.__dict__[self.attr_name] = value
            return value
        if self.default is _MISSING:
            raise AttributeError(f"'{type(instance).__name__}' object has no attribute '{self.attr_name}'")
        return self.default

    def __set__(self, instance: Any, value: Any) -> None:
        # dataclass-generated __init__ passes the descriptor itself as the default
        if value is self:
            return
        instance.__dict__[self.attr_name] = value

    @property
    def has_default(self) -> bool:
        return self.default is not _MISSING or self.default_factory is not None

    def __repr__(self) -> str:
        return f"FieldDescriptor(attr_name={self.attr_name!r}, name={self.name!r})"


def field(
    default: Any = _MISSING,
    *,
    default_factory: Callable[[], Any] | None = None,
    name: str | None = None,
    description: str | None = None,
    deprecated: str | None = None,
) -> Any:
    """Declare an exposed field on an ``@object_type`` class.

    The attribute must carry a type annotation::

        @object_type
        class Builder:
            image: str = field(default="alpine:latest", description="Base image")
    """
    return FieldDescriptor(
        default,
        default_factory=default_factory,
        name=name,
        description=description,
        deprecated=deprecated,
    )


def object_type(
    cls_or_none: type | None = None,
    /,
    *,
    name: str | None = None,
    description: str | None = None,
    deprecated: str | None = None,
    all_functions: bool = False,
) -> Any:
    """Mark a class as a module object exposed to the engine.

    Works bare (``@object_type``) or with arguments. With ``all_functions=True``
    every public instance method is exposed unless wrapped with ``ignore``.
    """

    def _wrap(cls: type) -> type:
        setattr(
            cls,
            OBJECT_ATTR,
            ObjectMeta(name=name, description=description, deprecated=deprecated, all_functions=all_functions),
        )
        return cls

    if cls_or_none is not None:
        return _wrap(cls_or_none)
    return _wrap


def function(
    func_or_none: Callable | None = None,
    /,
    *,
    name: str | None = None,
    description: str | None = None,
    deprecated: str | None = None,
    cache: str | None = None,
) -> Any:
    """Mark a method as a function exposed to the engine.

    Args:
        name: Exposed name override; camelCased either way.
        description: Overrides the docstring summary.
        deprecated: Deprecation reason shown by the engine.
        cache: ``"never"``, ``"session"`` or a time-to-live such as ``"5m"``.
    """

    def _wrap(func: Callable) -> Callable:
        func.__dagmod_function__ = FunctionMeta(  # type: ignore[attr-defined]
            name=name, description=description, deprecated=deprecated, cache=cache
        )
        return func

    if func_or_none is not None and callable(func_or_none):
        return _wrap(func_or_none)
    return _wrap


def constructor(method: Any) -> Any:
    """Mark a classmethod as the constructor the engine calls.

    Without one, ``__init__`` is used when it declares parameters.
    """
    target = method.__func__ if isinstance(method, classmethod) else method
    setattr(target, CONSTRUCTOR_ATTR, True)
    return method


def ignore(obj: Any) -> Any:
    """Hide a method or field from the engine."""
    target = obj.__func__ if isinstance(obj, (classmethod, staticmethod)) else obj
    setattr(target, IGNORE_ATTR, True)
    return obj


def enum_type(
    cls_or_none: type[enum.Enum] | None = None,
    /,
    *,
    name: str | None = None,
    description: str | None = None,
    values: dict[str, EnumValueMeta] | None = None,
) -> Any:
    """Expose an ``enum.Enum`` subclass to the engine.

    Member metadata is given by member name::

        @enum_type(values={"CI": enum_value(deprecated="Use STAGING instead")})
        class BuildEnvironment(enum.Enum):
            STAGING = "staging"
            CI = "ci"
    """

    def _wrap(cls: type[enum.Enum]) -> type[enum.Enum]:
        if not (isinstance(cls, type) and issubclass(cls, enum.Enum)):
            raise TypeError(f"@enum_type can only decorate Enum subclasses, got {cls!r}")
        unknown = set(values or {}) - set(cls.__members__)
        if unknown:
            raise ValueError(f"Unknown members for enum '{cls.__name__}': {', '.join(sorted(unknown))}")
        setattr(cls, ENUM_ATTR, EnumMeta(name=name, description=description, values=dict(values or {})))
        return cls

    if cls_or_none is not None:
        return _wrap(cls_or_none)
    return _wrap


def enum_value(
    value: str | None = None,
    *,
    description: str | None = None,
    deprecated: str | None = None,
) -> EnumValueMeta:
    """Describe one enum member; ``value`` overrides the wire value."""
    return EnumValueMeta(value=value, description=description, deprecated=deprecated)


def get_object_meta(cls: Any) -> ObjectMeta | None:
    """Return the ``@object_type`` metadata declared directly on a class."""
    if not isinstance(cls, type):
        return None
    meta = cls.__dict__.get(OBJECT_ATTR)
    return meta if isinstance(meta, ObjectMeta) else None


def get_function_meta(func: Any) -> FunctionMeta | None:
    meta = getattr(func, FUNCTION_ATTR, None)
    return meta if isinstance(meta, FunctionMeta) else None


def get_enum_meta(cls: Any) -> EnumMeta | None:
    if not isinstance(cls, type):
        return None
    meta = cls.__dict__.get(ENUM_ATTR)
    return meta if isinstance(meta, EnumMeta) else None


def is_ignored(obj: Any) -> bool:
    return bool(getattr(obj, IGNORE_ATTR, False))


def is_constructor(obj: Any) -> bool:
    target = obj.__func__ if isinstance(obj, classmethod) else obj
    return bool(getattr(target, CONSTRUCTOR_ATTR, False))
