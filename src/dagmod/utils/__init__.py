"""Utility helpers."""

from dagmod.utils.naming import to_camel_case, to_pascal_case, to_snake_case

__all__ = ["to_camel_case", "to_pascal_case", "to_snake_case"]
