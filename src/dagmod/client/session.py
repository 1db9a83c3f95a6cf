"""GraphQL engine client over the session HTTP endpoint."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

import httpx

from dagmod.client.base import (
    EngineClient,
    FunctionCachePolicy,
    FunctionCall,
    FunctionDef,
    ModuleDef,
    TypeDef,
)
from dagmod.client.query import QueryChain, QueryNode
from dagmod.errors import QueryError, SessionError
from dagmod.observability.tracing import trace_headers
from dagmod.schema.types import TypeDefKind
from dagmod.types import RemoteObject
from dagmod.utils.naming import to_snake_case

logger = logging.getLogger(__name__)

__all__ = [
    "GraphQLClient",
    "GraphQLFunctionCall",
    "GraphQLFunctionDef",
    "GraphQLModuleDef",
    "GraphQLTypeDef",
    "HTTPTransport",
    "connect",
]

DEFAULT_TIMEOUT = 600.0


class HTTPTransport:
    """Posts queries to ``http://127.0.0.1:<port>/query`` with the session token.

    ``headers`` are sent with every request; ``connect`` uses them for trace context.
    """

    def __init__(
        self,
        port: int,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=f"http://127.0.0.1:{port}",
            auth=httpx.BasicAuth(token, ""),
            headers=dict(headers or {}),
            timeout=timeout,
            transport=transport,
        )

    async def execute(self, query: str) -> dict[str, Any]:
        """Execute a query document and return its ``data`` member.

        Raises:
            SessionError: If the endpoint cannot be reached or answers with an HTTP error
                carrying no GraphQL errors.
            QueryError: If the response carries GraphQL errors.
        """
        logger.debug("Executing query: %s", query)
        try:
            response = await self._client.post("/query", json={"query": query})
        except httpx.HTTPError as exc:
            raise SessionError(f"Engine request failed: {exc}", cause=exc) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise SessionError(
                f"Engine returned a non-JSON response (HTTP {response.status_code})", cause=exc
            ) from exc

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            raise QueryError(errors[0].get("message", "Unknown query error"), errors=errors, query=query)
        if response.is_error:
            raise SessionError(f"Engine returned HTTP {response.status_code}")
        data = body.get("data") if isinstance(body, dict) else None
        return data or {}

    async def aclose(self) -> None:
        await self._client.aclose()


class GraphQLTypeDef(QueryNode, TypeDef):
    def with_kind(self, kind: TypeDefKind) -> GraphQLTypeDef:
        return GraphQLTypeDef(self._chain.select("withKind", {"kind": kind}))

    def with_optional(self, value: bool) -> GraphQLTypeDef:
        return GraphQLTypeDef(self._chain.select("withOptional", {"value": value}))

    def with_list_of(self, element_type: TypeDef) -> GraphQLTypeDef:
        return GraphQLTypeDef(self._chain.select("withListOf", {"elementType": element_type}))

    def with_object(self, name: str, description: str | None = None, deprecated: str | None = None) -> GraphQLTypeDef:
        args = {"name": name, "description": description, "deprecated": deprecated}
        return GraphQLTypeDef(self._chain.select("withObject", args))

    def with_enum(self, name: str, description: str | None = None) -> GraphQLTypeDef:
        return GraphQLTypeDef(self._chain.select("withEnum", {"name": name, "description": description}))

    def with_enum_member(
        self,
        name: str,
        value: str | None = None,
        description: str | None = None,
        deprecated: str | None = None,
    ) -> GraphQLTypeDef:
        args = {"name": name, "value": value, "description": description, "deprecated": deprecated}
        return GraphQLTypeDef(self._chain.select("withEnumMember", args))

    def with_field(
        self,
        name: str,
        type_def: TypeDef,
        description: str | None = None,
        deprecated: str | None = None,
    ) -> GraphQLTypeDef:
        args = {"name": name, "typeDef": type_def, "description": description, "deprecated": deprecated}
        return GraphQLTypeDef(self._chain.select("withField", args))

    def with_function(self, function: FunctionDef) -> GraphQLTypeDef:
        return GraphQLTypeDef(self._chain.select("withFunction", {"function": function}))

    def with_constructor(self, function: FunctionDef) -> GraphQLTypeDef:
        return GraphQLTypeDef(self._chain.select("withConstructor", {"function": function}))


class GraphQLFunctionDef(QueryNode, FunctionDef):
    def with_arg(
        self,
        name: str,
        type_def: TypeDef,
        description: str | None = None,
        default_value: str | None = None,
        default_path: str | None = None,
        ignore: list[str] | None = None,
    ) -> GraphQLFunctionDef:
        args = {
            "name": name,
            "typeDef": type_def,
            "description": description,
            "defaultValue": default_value,
            "defaultPath": default_path,
            "ignore": ignore,
        }
        return GraphQLFunctionDef(self._chain.select("withArg", args))

    def with_description(self, description: str) -> GraphQLFunctionDef:
        return GraphQLFunctionDef(self._chain.select("withDescription", {"description": description}))

    def with_cache_policy(self, policy: FunctionCachePolicy, time_to_live: str | None = None) -> GraphQLFunctionDef:
        args = {"policy": policy, "timeToLive": time_to_live}
        return GraphQLFunctionDef(self._chain.select("withCachePolicy", args))

    def with_deprecated(self, reason: str | None = None) -> GraphQLFunctionDef:
        return GraphQLFunctionDef(self._chain.select("withDeprecated", {"reason": reason}))


class GraphQLModuleDef(QueryNode, ModuleDef):
    def with_object(self, type_def: TypeDef) -> GraphQLModuleDef:
        return GraphQLModuleDef(self._chain.select("withObject", {"object": type_def}))

    def with_enum(self, type_def: TypeDef) -> GraphQLModuleDef:
        return GraphQLModuleDef(self._chain.select("withEnum", {"enum": type_def}))


class GraphQLFunctionCall(FunctionCall):
    def __init__(self, root: QueryChain) -> None:
        self._root = root
        self._chain = root.select("currentFunctionCall")

    async def parent_name(self) -> str:
        return await self._chain.select("parentName").execute() or ""

    async def name(self) -> str:
        return await self._chain.select("name").execute() or ""

    async def parent(self) -> str:
        value = await self._chain.select("parent").execute()
        return value if value is not None else "null"

    async def input_args(self) -> list[tuple[str, str]]:
        items = await self._chain.select_fields("inputArgs", ["name", "value"]).execute()
        return [(item["name"], item["value"]) for item in items or []]

    async def return_value(self, value: str) -> None:
        await self._chain.select("returnValue", {"value": value}).execute()

    async def return_error(self, message: str) -> None:
        error = QueryNode(self._root.select("error", {"message": message}))
        await self._chain.select("returnError", {"error": error}).execute()


class GraphQLClient(EngineClient):
    """Engine client speaking GraphQL through a transport.

    Remote objects are loaded through ``load_<snake_name>_from_id(id)``
    accessors resolved against the registered ``RemoteObject`` subclasses.
    """

    def __init__(self, transport: Any) -> None:
        self._transport = transport
        self._root = QueryChain(transport)

    def current_function_call(self) -> GraphQLFunctionCall:
        return GraphQLFunctionCall(self._root)

    def module(self) -> GraphQLModuleDef:
        return GraphQLModuleDef(self._root.select("module"))

    def type_def(self) -> GraphQLTypeDef:
        return GraphQLTypeDef(self._root.select("typeDef"))

    def function(self, name: str, return_type: TypeDef) -> GraphQLFunctionDef:
        return GraphQLFunctionDef(self._root.select("function", {"name": name, "returnType": return_type}))

    def __getattr__(self, name: str) -> Callable[[Any], RemoteObject]:
        if name.startswith("load_") and name.endswith("_from_id"):
            cls = _remote_type(name[len("load_") : -len("_from_id")])
            if cls is not None:
                return self._loader(cls)
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def _loader(self, cls: type[RemoteObject]) -> Callable[[Any], RemoteObject]:
        field_name = f"load{cls.__name__}FromID"

        def load(id_value: Any) -> RemoteObject:
            return cls(self._root.select(field_name, {"id": id_value}))

        return load

    async def close(self) -> None:
        aclose = getattr(self._transport, "aclose", None)
        if aclose is not None:
            await aclose()


def _remote_type(snake_name: str) -> type[RemoteObject] | None:
    for type_name, cls in list(RemoteObject._types.items()):
        if to_snake_case(type_name) == snake_name:
            return cls
    return None


def connect(config: Any, transport: httpx.AsyncBaseTransport | None = None) -> GraphQLClient:
    """Build a client for the session described by ``config``.

    Raises:
        SessionError: If the session port or token is missing or malformed.
    """
    port = config.get("session.port")
    token = config.get("session.token")
    if port in (None, "") or not token:
        raise SessionError("DAGGER_SESSION_PORT and DAGGER_SESSION_TOKEN must be set")
    try:
        port_number = int(port)
    except (TypeError, ValueError) as exc:
        raise SessionError(f"Invalid session port: {port!r}", cause=exc) from exc
    timeout = float(config.get("session.timeout", DEFAULT_TIMEOUT))
    return GraphQLClient(
        HTTPTransport(port_number, token, timeout=timeout, transport=transport, headers=trace_headers())
    )
