"""Discovery and registry of exposed object types and enums."""

from dagmod.registry.discovery import (
    discover_enum_types,
    discover_module_types,
    iter_module_classes,
    load_entry_module,
)
from dagmod.registry.docs import DocIndex
from dagmod.registry.registry import Registry
from dagmod.registry.types import (
    AsyncShape,
    CacheMode,
    CachePolicy,
    EnumType,
    EnumValue,
    Field,
    Function,
    ModuleType,
    Parameter,
)

__all__ = [
    "AsyncShape",
    "CacheMode",
    "CachePolicy",
    "DocIndex",
    "EnumType",
    "EnumValue",
    "Field",
    "Function",
    "ModuleType",
    "Parameter",
    "Registry",
    "discover_enum_types",
    "discover_module_types",
    "iter_module_classes",
    "load_entry_module",
]
