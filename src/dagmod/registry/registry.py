"""Registry of discovered object types and enums, validated up front."""

from __future__ import annotations

import logging
import types
from typing import Any, Iterator

from dagmod.errors import ObjectNotFoundError, UnregisteredEnumError
from dagmod.registry.discovery import (
    discover_enum_types,
    discover_module_types,
    load_entry_module,
)
from dagmod.registry.docs import DocIndex
from dagmod.registry.types import EnumType, Function, ModuleType
from dagmod.schema.mapper import map_type
from dagmod.schema.types import TypeDefKind, TypeDescriptor

logger = logging.getLogger(__name__)

__all__ = ["Registry"]


class Registry:
    """Immutable view of the object types and enums a module exposes.

    Built once per process from the entry module. Every annotation is
    mapped at construction, so a type the engine cannot represent fails
    here rather than at first invocation.
    """

    def __init__(self, objects: list[ModuleType], enums: list[EnumType] | None = None) -> None:
        """Initialize the Registry.

        Args:
            objects: Discovered object types, in registration order.
            enums: Discovered enums, in registration order.

        Raises:
            UnsupportedTypeError: If a parameter, field or return type cannot be mapped.
            UnregisteredEnumError: If an enum is referenced without being exposed.
        """
        self._objects: dict[str, ModuleType] = {}
        self._by_class: dict[type, ModuleType] = {}
        for obj in objects:
            if obj.name in self._objects:
                logger.warning("Duplicate object name '%s'; keeping the first definition", obj.name)
                continue
            self._objects[obj.name] = obj
            self._by_class[obj.cls] = obj
        self._enums: dict[str, EnumType] = {e.name: e for e in enums or []}
        self._validate()

    @classmethod
    def from_module(cls, module: types.ModuleType, docs: DocIndex | None = None) -> Registry:
        """Discover and validate everything exposed by an imported module."""
        docs = docs if docs is not None else DocIndex()
        enums = discover_enum_types(module, docs)
        objects = discover_module_types(module, docs)
        return cls(objects, enums)

    @classmethod
    def from_entry_module(
        cls,
        name: str,
        docs: DocIndex | None = None,
        search_path: str | None = None,
    ) -> Registry:
        """Import the entry module by name, then discover and validate it.

        Raises:
            DiscoveryError: If the entry module cannot be imported.
        """
        return cls.from_module(load_entry_module(name, search_path=search_path), docs)

    # ----- Validation -----

    def _validate(self) -> None:
        for obj in self._objects.values():
            if obj.constructor is not None:
                self._validate_function(obj.constructor)
            for fld in obj.fields:
                self._validate_annotation(fld.annotation)
            for fn in obj.functions:
                self._validate_function(fn)
                if not fn.returns_void:
                    self._validate_annotation(fn.return_type)

    def _validate_function(self, fn: Function) -> None:
        for param in fn.engine_parameters:
            self._validate_annotation(param.annotation)

    def _validate_annotation(self, annotation: Any) -> None:
        descriptor, _ = map_type(annotation)
        self._validate_descriptor(descriptor)

    def _validate_descriptor(self, descriptor: TypeDescriptor) -> None:
        if descriptor.kind is TypeDefKind.LIST and descriptor.element is not None:
            self._validate_descriptor(descriptor.element)
        elif descriptor.kind is TypeDefKind.ENUM and self.get_enum(descriptor.name or "") is None:
            raise UnregisteredEnumError(descriptor.name or "")

    # ----- Query Methods -----

    def get(self, name: str) -> ModuleType | None:
        """Look up an object type by exposed name. Returns None if not found."""
        return self._objects.get(name)

    def get_object(self, name: str) -> ModuleType:
        """Look up an object type by exact exposed name.

        Raises:
            ObjectNotFoundError: If no object type has that name.
        """
        obj = self._objects.get(name)
        if obj is None:
            raise ObjectNotFoundError(name)
        return obj

    def get_by_class(self, cls: type) -> ModuleType | None:
        """Look up the object type backed by a Python class."""
        return self._by_class.get(cls)

    def get_enum(self, name: str) -> EnumType | None:
        return self._enums.get(name)

    def has(self, name: str) -> bool:
        return name in self._objects

    def iter(self) -> Iterator[tuple[str, ModuleType]]:
        """Return an iterator of (name, object type) tuples."""
        return iter(list(self._objects.items()))

    @property
    def objects(self) -> list[ModuleType]:
        """Object types in registration order."""
        return list(self._objects.values())

    @property
    def enums(self) -> list[EnumType]:
        """Enums in registration order."""
        return list(self._enums.values())

    @property
    def count(self) -> int:
        """Number of registered object types."""
        return len(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, name: object) -> bool:
        return name in self._objects
