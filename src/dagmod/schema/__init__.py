"""Type mapping between Python annotations and engine type definitions."""

from dagmod.schema.mapper import map_type, split_optional, unwrap_return
from dagmod.schema.types import AsyncShape, ReturnShape, TypeDefKind, TypeDescriptor

__all__ = [
    "AsyncShape",
    "ReturnShape",
    "TypeDefKind",
    "TypeDescriptor",
    "map_type",
    "split_optional",
    "unwrap_return",
]
