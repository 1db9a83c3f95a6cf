"""Registry types: ModuleType, Function, Parameter, Field, EnumType, CachePolicy."""

from __future__ import annotations

import decimal
import enum
from dataclasses import dataclass, field
from typing import Any, Callable

from dagmod.schema.types import AsyncShape

__all__ = [
    "AsyncShape",
    "CacheMode",
    "CachePolicy",
    "EnumType",
    "EnumValue",
    "Field",
    "Function",
    "ModuleType",
    "Parameter",
]


class CacheMode(str, enum.Enum):
    """Engine cache policies for a function's result."""

    DEFAULT = "Default"
    PER_SESSION = "PerSession"
    NEVER = "Never"


@dataclass(frozen=True)
class CachePolicy:
    """Cache directive of a function.

    ``ttl`` is only set for the default mode, as a duration string such as ``"10m"``.
    """

    mode: CacheMode
    ttl: str | None = None

    @classmethod
    def parse(cls, value: str | None) -> CachePolicy | None:
        """Parse a ``cache=`` directive.

        Examples:
            >>> CachePolicy.parse("never")
            CachePolicy(mode=<CacheMode.NEVER: 'Never'>, ttl=None)
            >>> CachePolicy.parse("5m").ttl
            '5m'
        """
        if value is None or not value.strip():
            return None
        normalized = value.strip()
        lowered = normalized.lower()
        if lowered == "never":
            return cls(CacheMode.NEVER)
        if lowered == "session":
            return cls(CacheMode.PER_SESSION)
        return cls(CacheMode.DEFAULT, ttl=normalized)


@dataclass
class Parameter:
    """One argument of a function or constructor.

    ``name`` is the exposed (camelCased) name, ``attr_name`` the Python
    parameter name used when calling.
    """

    name: str
    attr_name: str
    annotation: Any
    description: str | None = None
    optional: bool = False
    nullable: bool = False
    has_default: bool = False
    default: Any = None
    default_path: str | None = None
    ignore: list[str] | None = None
    is_cancellation_token: bool = False

    def default_json(self) -> Any:
        """Return the default as a JSON-compatible value, or ``None``.

        Only primitives and enum members have a statically known wire form;
        enum members are sent by name.
        """
        if not self.has_default or self.default is None:
            return None
        if isinstance(self.default, enum.Enum):
            return self.default.name
        if isinstance(self.default, (str, bool, int, float)):
            return self.default
        if isinstance(self.default, decimal.Decimal):
            return float(self.default)
        return None


@dataclass
class Field:
    """An exposed property of a module object."""

    name: str
    attr_name: str
    annotation: Any
    description: str | None = None
    deprecated: str | None = None


@dataclass
class Function:
    """A callable operation on a module object.

    The constructor is represented as a ``Function`` with an empty name.
    """

    name: str
    method: Callable[..., Any]
    return_type: Any
    returns_void: bool = False
    async_shape: AsyncShape = AsyncShape.SYNC
    parameters: list[Parameter] = field(default_factory=list)
    description: str | None = None
    deprecated: str | None = None
    cache: CachePolicy | None = None
    attr_name: str = ""

    @property
    def engine_parameters(self) -> list[Parameter]:
        """Parameters visible to the engine (cancellation tokens excluded)."""
        return [p for p in self.parameters if not p.is_cancellation_token]

    @property
    def is_async(self) -> bool:
        return self.async_shape is not AsyncShape.SYNC


@dataclass
class ModuleType:
    """A user class exposed to the engine as an object type."""

    name: str
    cls: type
    description: str | None = None
    deprecated: str | None = None
    constructor: Function | None = None
    functions: list[Function] = field(default_factory=list)
    fields: list[Field] = field(default_factory=list)

    def get_function(self, name: str) -> Function | None:
        for fn in self.functions:
            if fn.name == name:
                return fn
        return None

    @property
    def constructor_parameter_names(self) -> set[str]:
        if self.constructor is None:
            return set()
        return {p.name for p in self.constructor.engine_parameters}


@dataclass
class EnumValue:
    """One member of an exposed enum.

    ``name`` is the literal member name; ``value`` is what travels on the wire.
    """

    name: str
    value: str
    description: str | None = None
    deprecated: str | None = None


@dataclass
class EnumType:
    """An ``enum.Enum`` subclass exposed to the engine."""

    name: str
    cls: type[enum.Enum]
    description: str | None = None
    values: list[EnumValue] = field(default_factory=list)
