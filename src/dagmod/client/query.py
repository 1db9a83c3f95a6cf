"""Immutable GraphQL selection chains."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from dagmod.errors import QueryError
from dagmod.types import JSON, RemoteObject, Scalar

__all__ = ["QueryChain", "QueryNode", "Transport", "render_value"]


class Transport(Protocol):
    """Executes a rendered query and returns its ``data`` member."""

    async def execute(self, query: str) -> dict[str, Any]: ...


@dataclass(frozen=True)
class _Selection:
    name: str
    args: tuple[tuple[str, Any], ...] = ()
    fields: tuple[str, ...] = ()


class QueryChain:
    """A path of field selections from the query root.

    Example:
        chain = QueryChain(transport).select("currentFunctionCall").select("name")
        name = await chain.execute()  # query{currentFunctionCall{name}}
    """

    def __init__(self, transport: Transport, selections: tuple[_Selection, ...] = ()) -> None:
        self._transport = transport
        self._selections = selections

    def select(self, name: str, args: dict[str, Any] | None = None) -> QueryChain:
        """Return a new chain extended by one field. ``None`` arguments are dropped."""
        items = tuple((k, v) for k, v in (args or {}).items() if v is not None)
        return QueryChain(self._transport, (*self._selections, _Selection(name, items)))

    def select_fields(self, name: str, fields: list[str] | tuple[str, ...]) -> QueryChain:
        """Return a new chain ending in ``name`` with several leaf fields."""
        return QueryChain(self._transport, (*self._selections, _Selection(name, (), tuple(fields))))

    async def render(self) -> str:
        """Render the chain as a query document, resolving object arguments to IDs."""
        parts: list[str] = []
        for selection in self._selections:
            text = selection.name
            if selection.args:
                rendered = [f"{key}:{await render_value(value)}" for key, value in selection.args]
                text += "(" + ",".join(rendered) + ")"
            if selection.fields:
                text += "{" + " ".join(selection.fields) + "}"
            parts.append(text)
        return "query{" + "{".join(parts) + "}" * len(parts)

    async def execute(self) -> Any:
        """Run the query and return the value at the end of the chain."""
        query = await self.render()
        data: Any = await self._transport.execute(query)
        for selection in self._selections:
            if not isinstance(data, dict) or selection.name not in data:
                raise QueryError(
                    f"Response has no value for '{selection.name}'",
                    errors=[],
                    query=query,
                )
            data = data[selection.name]
        return data

    def __repr__(self) -> str:
        return f"QueryChain({'.'.join(s.name for s in self._selections)})"


class QueryNode:
    """An engine object reachable through a chain and referenced by ID."""

    def __init__(self, chain: QueryChain) -> None:
        self._chain = chain

    async def id(self) -> Any:
        return await self._chain.select("id").execute()


async def render_value(value: Any) -> str:
    """Render a Python value as a GraphQL input literal."""
    if isinstance(value, (QueryNode, RemoteObject)):
        value = await value.id()
    if isinstance(value, Scalar):
        return json.dumps(value.value)
    if isinstance(value, JSON):
        return json.dumps(json.dumps(value.value))
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join([await render_value(v) for v in value]) + "]"
    if isinstance(value, dict):
        return "{" + ",".join([f"{k}:{await render_value(v)}" for k, v in value.items()]) + "}"
    raise TypeError(f"Cannot render {type(value).__name__} as a query argument")
