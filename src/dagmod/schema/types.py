"""Engine type descriptors produced by the type mapper."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

__all__ = ["TypeDefKind", "TypeDescriptor", "AsyncShape", "ReturnShape"]


class TypeDefKind(str, Enum):
    """Kinds of engine type definitions."""

    STRING = "STRING_KIND"
    INTEGER = "INTEGER_KIND"
    FLOAT = "FLOAT_KIND"
    BOOLEAN = "BOOLEAN_KIND"
    SCALAR = "SCALAR_KIND"
    LIST = "LIST_KIND"
    OBJECT = "OBJECT_KIND"
    ENUM = "ENUM_KIND"
    VOID = "VOID_KIND"


@dataclass(frozen=True)
class TypeDescriptor:
    """Engine-side shape of a Python type.

    ``name`` is set for object and enum references, ``element`` for lists.
    """

    kind: TypeDefKind
    optional: bool = False
    name: str | None = None
    element: TypeDescriptor | None = None

    def with_optional(self, optional: bool) -> TypeDescriptor:
        """Return a copy with the given optionality."""
        if optional == self.optional:
            return self
        return replace(self, optional=optional)


class AsyncShape(str, Enum):
    """How a function produces its result."""

    SYNC = "sync"
    COROUTINE = "coroutine"
    AWAITABLE = "awaitable"


@dataclass(frozen=True)
class ReturnShape:
    """Declared return of a function after async unwrapping."""

    annotation: Any
    returns_void: bool
    async_shape: AsyncShape
