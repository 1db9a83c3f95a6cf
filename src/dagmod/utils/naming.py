"""Name case conversion between Python and engine conventions."""

from __future__ import annotations

import re

__all__ = ["to_camel_case", "to_pascal_case", "to_snake_case"]

_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_camel_case(name: str) -> str:
    """Convert a snake_case or PascalCase name to camelCase.

    Examples:
        >>> to_camel_case("get_cached_container")
        'getCachedContainer'
        >>> to_camel_case("HelloWorld")
        'helloWorld'
    """
    if not name:
        return ""
    parts = [p for p in name.split("_") if p]
    if not parts:
        return name
    head = parts[0][0].lower() + parts[0][1:]
    return head + "".join(p[0].upper() + p[1:] for p in parts[1:])


def to_pascal_case(name: str) -> str:
    """Convert a snake_case or camelCase name to PascalCase."""
    camel = to_camel_case(name)
    if not camel:
        return ""
    return camel[0].upper() + camel[1:]


def to_snake_case(name: str) -> str:
    """Convert a PascalCase or camelCase name to snake_case.

    Examples:
        >>> to_snake_case("GitRepository")
        'git_repository'
        >>> to_snake_case("HTTPServer")
        'http_server'
    """
    return _BOUNDARY.sub("_", name).lower()
