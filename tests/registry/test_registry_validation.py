"""Tests for Registry construction, validation and lookups."""

from __future__ import annotations

import enum
import logging
from typing import Any, Optional

import pytest

import greeter_module
from dagmod.decorator import enum_type, field, function, get_object_meta, object_type
from dagmod.errors import ObjectNotFoundError, UnregisteredEnumError, UnsupportedTypeError
from dagmod.registry.discovery import build_enum_type, build_module_type
from dagmod.registry.docs import DocIndex
from dagmod.registry.registry import Registry
from dagmod.registry.types import ModuleType


class Hidden(enum.Enum):
    A = "a"


@enum_type
class Visible(enum.Enum):
    B = "b"


@object_type
class AnyParam:
    @function
    def run(self, value: Any) -> str:
        return ""


@object_type
class BytesReturn:
    @function
    def run(self) -> bytes:
        return b""


@object_type
class BadField:
    blob: object = field(default=None)


@object_type
class UsesHidden:
    @function
    def run(self, items: list[Optional[Hidden]]) -> str:
        return ""


@object_type
class UsesVisible:
    @function
    def run(self, value: Visible) -> list[Visible]:
        return [value]


@object_type
class BadConstructor:
    def __init__(self, callback: Any) -> None:
        self.callback = callback

    @function
    def run(self) -> str:
        return ""


@object_type(name="UsesVisible")
class Duplicate:
    @function
    def other(self) -> str:
        return ""


def _types(*classes: type) -> list[ModuleType]:
    docs = DocIndex()
    return [build_module_type(cls, get_object_meta(cls), docs) for cls in classes]


class TestValidation:
    """Up-front validation of every exposed annotation."""

    @pytest.mark.parametrize("cls", [AnyParam, BytesReturn, BadField, BadConstructor])
    def test_unsupported_types(self, cls):
        """Parameters, returns, fields and constructor args are all checked."""
        with pytest.raises(UnsupportedTypeError):
            Registry(_types(cls))

    def test_unregistered_enum_in_list(self):
        """Enums nested in lists must be registered."""
        with pytest.raises(UnregisteredEnumError) as exc_info:
            Registry(_types(UsesHidden))
        assert exc_info.value.details["enum_name"] == "Hidden"

    def test_registered_enum(self):
        """Registered enums validate, in arguments and list returns."""
        registry = Registry(_types(UsesVisible), [build_enum_type(Visible, DocIndex())])
        assert registry.has("UsesVisible")
        assert registry.get_enum("Visible") is not None

    def test_duplicate_names_keep_first(self, caplog):
        """A second object with the same name is ignored with a warning."""
        enums = [build_enum_type(Visible, DocIndex())]
        with caplog.at_level(logging.WARNING, logger="dagmod.registry.registry"):
            registry = Registry(_types(UsesVisible, Duplicate), enums)
        assert registry.count == 1
        assert registry.get_object("UsesVisible").cls is UsesVisible
        assert registry.get_by_class(Duplicate) is None
        assert "Duplicate object name 'UsesVisible'" in caplog.text


class TestLookups:
    """Registry query methods."""

    def test_from_module(self, registry):
        """Objects and enums are discovered in definition order."""
        assert [o.name for o in registry.objects] == ["Point", "Greeter", "Project", "Workspace"]
        assert [e.name for e in registry.enums] == ["Status"]
        assert registry.count == len(registry) == 4

    def test_get_object(self, registry):
        """Exact-name lookup; unknown names raise."""
        assert registry.get_object("Greeter").cls is greeter_module.Greeter
        with pytest.raises(ObjectNotFoundError):
            registry.get_object("greeter")
        assert registry.get("greeter") is None

    def test_get_by_class(self, registry):
        assert registry.get_by_class(greeter_module.Point).name == "Point"
        assert registry.get_by_class(int) is None

    def test_contains_and_iter(self, registry):
        assert "Project" in registry
        assert "Nope" not in registry
        assert [name for name, _ in registry.iter()] == ["Point", "Greeter", "Project", "Workspace"]

    def test_from_entry_module(self, tmp_path, monkeypatch):
        """An entry module is imported by name and scanned."""
        (tmp_path / "entry_mod_delta.py").write_text(
            "from dagmod import object_type, function\n"
            "\n"
            "@object_type\n"
            "class Hello:\n"
            "    @function\n"
            "    def hi(self) -> str:\n"
            "        return 'hi'\n"
        )
        monkeypatch.syspath_prepend(str(tmp_path))
        registry = Registry.from_entry_module("entry_mod_delta")
        assert [o.name for o in registry.objects] == ["Hello"]
