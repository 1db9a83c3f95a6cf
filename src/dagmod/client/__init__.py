"""Engine client interface and its GraphQL implementation."""

from dagmod.client.base import (
    EngineClient,
    FunctionCachePolicy,
    FunctionCall,
    FunctionDef,
    ModuleDef,
    TypeDef,
)
from dagmod.client.query import QueryChain, QueryNode
from dagmod.client.session import GraphQLClient, HTTPTransport, connect

__all__ = [
    "EngineClient",
    "FunctionCachePolicy",
    "FunctionCall",
    "FunctionDef",
    "GraphQLClient",
    "HTTPTransport",
    "ModuleDef",
    "QueryChain",
    "QueryNode",
    "TypeDef",
    "connect",
]
