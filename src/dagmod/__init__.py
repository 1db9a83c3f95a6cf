"""dagmod - write Dagger engine modules as plain Python classes."""

from __future__ import annotations

# Markers
from dagmod.decorator import (
    Arg,
    constructor,
    enum_type,
    enum_value,
    field,
    function,
    ignore,
    object_type,
)

# Value types
from dagmod.types import JSON, CancellationToken, RemoteObject, Scalar

# Core
from dagmod.codec import Codec
from dagmod.config import Config
from dagmod.context import Runtime
from dagmod.dispatcher import Dispatcher, main
from dagmod.registry import DocIndex, Registry
from dagmod.schema import TypeDefKind, TypeDescriptor, map_type

# Client
from dagmod.client import EngineClient, GraphQLClient, connect

# Errors
from dagmod.errors import (
    AmbiguousConstructorError,
    ConfigError,
    DagmodError,
    DecodeError,
    DiscoveryError,
    ErrorCodes,
    FunctionNotFoundError,
    MissingArgumentError,
    ObjectNotFoundError,
    UnregisteredEnumError,
    UnsupportedTypeError,
)

# Observability
from dagmod.observability import ContextLogger

__version__ = "0.1.0"

__all__ = [
    # Markers
    "Arg",
    "constructor",
    "enum_type",
    "enum_value",
    "field",
    "function",
    "ignore",
    "object_type",
    # Value types
    "JSON",
    "CancellationToken",
    "RemoteObject",
    "Scalar",
    # Core
    "Codec",
    "Config",
    "Dispatcher",
    "DocIndex",
    "Registry",
    "Runtime",
    "TypeDefKind",
    "TypeDescriptor",
    "main",
    "map_type",
    # Client
    "EngineClient",
    "GraphQLClient",
    "connect",
    # Errors
    "AmbiguousConstructorError",
    "ConfigError",
    "DagmodError",
    "DecodeError",
    "DiscoveryError",
    "ErrorCodes",
    "FunctionNotFoundError",
    "MissingArgumentError",
    "ObjectNotFoundError",
    "UnregisteredEnumError",
    "UnsupportedTypeError",
    # Observability
    "ContextLogger",
]
