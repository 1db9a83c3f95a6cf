"""Tests for name case conversion."""

from __future__ import annotations

import pytest

from dagmod.utils.naming import to_camel_case, to_pascal_case, to_snake_case


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("get_cached_container", "getCachedContainer"),
        ("hello", "hello"),
        ("HelloWorld", "helloWorld"),
        ("count_to", "countTo"),
        ("_private_name", "privateName"),
        ("", ""),
    ],
)
def test_to_camel_case(name, expected):
    assert to_camel_case(name) == expected


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("git_repository", "GitRepository"),
        ("container", "Container"),
        ("alreadyCamel", "AlreadyCamel"),
    ],
)
def test_to_pascal_case(name, expected):
    assert to_pascal_case(name) == expected


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("GitRepository", "git_repository"),
        ("Container", "container"),
        ("HTTPServer", "http_server"),
        ("cacheVolume", "cache_volume"),
    ],
)
def test_to_snake_case(name, expected):
    assert to_snake_case(name) == expected
