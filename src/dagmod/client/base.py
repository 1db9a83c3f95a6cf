"""Abstract engine client consumed by the dispatcher and codec.

Builders are immutable: every ``with_*`` call returns a new builder.
JSON values cross this interface as JSON text.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from dagmod.schema.types import TypeDefKind

__all__ = [
    "EngineClient",
    "FunctionCachePolicy",
    "FunctionCall",
    "FunctionDef",
    "ModuleDef",
    "TypeDef",
    "TypeDefKind",
]


class FunctionCachePolicy(str, Enum):
    """Engine cache policies for function results."""

    DEFAULT = "Default"
    PER_SESSION = "PerSession"
    NEVER = "Never"


class TypeDef(ABC):
    """Builder for an engine type definition."""

    @abstractmethod
    def with_kind(self, kind: TypeDefKind) -> TypeDef: ...

    @abstractmethod
    def with_optional(self, value: bool) -> TypeDef: ...

    @abstractmethod
    def with_list_of(self, element_type: TypeDef) -> TypeDef: ...

    @abstractmethod
    def with_object(self, name: str, description: str | None = None, deprecated: str | None = None) -> TypeDef: ...

    @abstractmethod
    def with_enum(self, name: str, description: str | None = None) -> TypeDef: ...

    @abstractmethod
    def with_enum_member(
        self,
        name: str,
        value: str | None = None,
        description: str | None = None,
        deprecated: str | None = None,
    ) -> TypeDef: ...

    @abstractmethod
    def with_field(
        self,
        name: str,
        type_def: TypeDef,
        description: str | None = None,
        deprecated: str | None = None,
    ) -> TypeDef: ...

    @abstractmethod
    def with_function(self, function: FunctionDef) -> TypeDef: ...

    @abstractmethod
    def with_constructor(self, function: FunctionDef) -> TypeDef: ...


class FunctionDef(ABC):
    """Builder for an engine function definition."""

    @abstractmethod
    def with_arg(
        self,
        name: str,
        type_def: TypeDef,
        description: str | None = None,
        default_value: str | None = None,
        default_path: str | None = None,
        ignore: list[str] | None = None,
    ) -> FunctionDef:
        """Add an argument. ``default_value`` is JSON text."""

    @abstractmethod
    def with_description(self, description: str) -> FunctionDef: ...

    @abstractmethod
    def with_cache_policy(self, policy: FunctionCachePolicy, time_to_live: str | None = None) -> FunctionDef: ...

    @abstractmethod
    def with_deprecated(self, reason: str | None = None) -> FunctionDef: ...


class ModuleDef(ABC):
    """Builder for the module definition submitted at registration."""

    @abstractmethod
    def with_object(self, type_def: TypeDef) -> ModuleDef: ...

    @abstractmethod
    def with_enum(self, type_def: TypeDef) -> ModuleDef: ...

    @abstractmethod
    async def id(self) -> Any:
        """Submit the definition and return the module ID."""


class FunctionCall(ABC):
    """The call the engine started this process for."""

    @abstractmethod
    async def parent_name(self) -> str:
        """Name of the receiving object type; empty at registration."""

    @abstractmethod
    async def name(self) -> str:
        """Name of the function; empty for a constructor call."""

    @abstractmethod
    async def parent(self) -> str:
        """Serialized state of the receiving object as JSON text."""

    @abstractmethod
    async def input_args(self) -> list[tuple[str, str]]:
        """Arguments as ``(name, JSON text)`` pairs."""

    @abstractmethod
    async def return_value(self, value: str) -> None:
        """Report the JSON-encoded result."""

    @abstractmethod
    async def return_error(self, message: str) -> None:
        """Report a failure with the given message."""


class EngineClient(ABC):
    """Entry point to the engine API.

    Concrete clients also expose ``load_<type>_from_id(id)`` accessors for
    every remote object type.
    """

    @abstractmethod
    def current_function_call(self) -> FunctionCall: ...

    @abstractmethod
    def module(self) -> ModuleDef: ...

    @abstractmethod
    def type_def(self) -> TypeDef: ...

    @abstractmethod
    def function(self, name: str, return_type: TypeDef) -> FunctionDef: ...

    async def close(self) -> None:
        """Release transport resources."""
        return None
