"""Docstring index: summaries and Google-style argument descriptions."""

from __future__ import annotations

import inspect
import re
from dataclasses import dataclass, field
from typing import Any

__all__ = ["DocIndex", "ParsedDoc", "parse_docstring"]

_SECTION_HEADERS = {"args", "arguments", "parameters", "params"}
_ENTRY = re.compile(r"^\*{0,2}(?P<name>\w+)\s*(?:\([^)]*\))?\s*:\s*(?P<text>.*)$")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s")


@dataclass
class ParsedDoc:
    """A parsed docstring."""

    summary: str | None = None
    params: dict[str, str] = field(default_factory=dict)


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _first_sentence(paragraph: str) -> str:
    collapsed = _collapse(paragraph)
    parts = _SENTENCE_END.split(collapsed, maxsplit=1)
    return parts[0]


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def parse_docstring(doc: str | None) -> ParsedDoc:
    """Parse a cleaned docstring into its summary and ``Args:`` entries."""
    if not doc or not doc.strip():
        return ParsedDoc()

    lines = doc.strip("\n").splitlines()

    summary_lines: list[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped:
            break
        if stripped.rstrip(":").lower() in _SECTION_HEADERS and stripped.endswith(":"):
            break
        summary_lines.append(stripped)
    summary = _first_sentence(" ".join(summary_lines)) if summary_lines else None

    params: dict[str, str] = {}
    i = 0
    while i < len(lines):
        stripped = lines[i].strip()
        if stripped.endswith(":") and stripped[:-1].lower() in _SECTION_HEADERS:
            header_indent = _indent(lines[i])
            i += 1
            entry_indent: int | None = None
            current: str | None = None
            while i < len(lines):
                line = lines[i]
                if not line.strip():
                    i += 1
                    continue
                indent = _indent(line)
                if indent <= header_indent:
                    break
                if entry_indent is None:
                    entry_indent = indent
                match = _ENTRY.match(line.strip()) if indent == entry_indent else None
                if match:
                    current = match.group("name")
                    params[current] = match.group("text").strip()
                elif current is not None:
                    params[current] = f"{params[current]} {line.strip()}".strip()
                i += 1
            continue
        i += 1

    return ParsedDoc(summary=summary or None, params={k: _collapse(v) for k, v in params.items()})


class DocIndex:
    """Lazily parsed docstrings, cached per documented object.

    One index is owned by the runtime for the lifetime of a call.
    """

    def __init__(self) -> None:
        self._cache: dict[Any, ParsedDoc] = {}

    def _parsed(self, obj: Any) -> ParsedDoc:
        try:
            return self._cache[obj]
        except KeyError:
            pass
        except TypeError:
            # unhashable documented objects are parsed every time
            return parse_docstring(inspect.getdoc(obj))
        parsed = parse_docstring(self._own_doc(obj))
        self._cache[obj] = parsed
        return parsed

    @staticmethod
    def _own_doc(obj: Any) -> str | None:
        # Classes inherit docstrings through inspect.getdoc; only use their own
        if isinstance(obj, type):
            doc = obj.__dict__.get("__doc__")
            if not isinstance(doc, str):
                return None
            # dataclasses synthesise "Name(field: type, ...)" when undocumented
            if doc.startswith(f"{obj.__name__}("):
                return None
            return inspect.cleandoc(doc)
        return inspect.getdoc(obj)

    def summary(self, obj: Any) -> str | None:
        """First sentence of the object's docstring, whitespace collapsed."""
        return self._parsed(obj).summary

    def param_doc(self, func: Any, name: str) -> str | None:
        """Description of parameter ``name`` from the ``Args:`` section."""
        return self._parsed(func).params.get(name)

    def __len__(self) -> int:
        return len(self._cache)
