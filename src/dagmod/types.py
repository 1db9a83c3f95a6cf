"""Base value types shared by user modules and generated client bindings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar

__all__ = ["Scalar", "RemoteObject", "JSON", "CancellationToken"]

_logger = logging.getLogger(__name__)


@dataclass
class Scalar:
    """Opaque scalar carried as a string on the wire.

    Generated ID wrappers (``ContainerID``, ``DirectoryID``, ...) subclass it.
    """

    value: str = ""

    def __str__(self) -> str:
        return self.value


class RemoteObject:
    """Base class for objects whose state lives in the engine.

    Instances are referenced only by their opaque ID. Subclasses are indexed
    by class name so a client can materialise them when loading by ID. This
    index is the one process-wide registry: engine type names are unique, so
    a later subclass with the same name replaces the earlier one with a warning.
    """

    _types: ClassVar[dict[str, type[RemoteObject]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        previous = RemoteObject._types.get(cls.__name__)
        if previous is not None and previous is not cls:
            _logger.warning(
                "Remote type '%s' from %s replaces the one from %s",
                cls.__name__,
                cls.__module__,
                previous.__module__,
            )
        RemoteObject._types[cls.__name__] = cls

    def __init__(self, chain: Any = None) -> None:
        self._chain = chain

    async def id(self) -> Any:
        """Resolve this object's ID through the engine."""
        if self._chain is None:
            raise RuntimeError(f"{type(self).__name__} is not bound to an engine query")
        return await self._chain.select("id").execute()


@dataclass(frozen=True)
class JSON:
    """Arbitrary JSON value passed through without conversion."""

    value: Any = None


class CancellationToken:
    """Token handed to functions that accept one. Never cancelled."""

    _NONE: ClassVar[CancellationToken | None] = None

    @property
    def cancelled(self) -> bool:
        return False

    @classmethod
    def none(cls) -> CancellationToken:
        """Return the shared never-cancelled token."""
        if cls._NONE is None:
            cls._NONE = cls()
        return cls._NONE
