"""Shared test fixtures for the dagmod test suite."""

from __future__ import annotations

import io
from typing import Any, Awaitable, Callable

import pytest

import greeter_module
from dagmod.config import Config
from dagmod.context import Runtime
from dagmod.dispatcher import Dispatcher
from dagmod.observability.context_logger import ContextLogger
from dagmod.registry.docs import DocIndex
from dagmod.registry.registry import Registry

from engine_helpers import FakeEngineClient, FakeFunctionCall


@pytest.fixture(autouse=True)
def _clear_calls() -> None:
    greeter_module.CALLS.clear()


@pytest.fixture
def registry() -> Registry:
    """Registry discovered from the sample greeter module."""
    return Registry.from_module(greeter_module, DocIndex())


@pytest.fixture
def log_output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def make_runtime(registry: Registry, log_output: io.StringIO) -> Callable[..., Runtime]:
    """Factory building a runtime around a fake engine client."""

    def factory(call: FakeFunctionCall | None = None, **overrides: Any) -> Runtime:
        kwargs: dict[str, Any] = {
            "client": FakeEngineClient(call),
            "registry": registry,
            "call_logger": ContextLogger("dagmod.call", output=log_output),
        }
        kwargs.update(overrides)
        return Runtime(Config(), **kwargs)

    return factory


@pytest.fixture
def dispatch(make_runtime: Callable[..., Runtime]) -> Callable[..., Awaitable[tuple[int, FakeFunctionCall, FakeEngineClient]]]:
    """Run one call through the dispatcher; returns ``(exit_code, call, client)``."""

    async def run(
        parent_name: str = "",
        name: str = "",
        parent: Any = None,
        args: dict[str, Any] | None = None,
    ) -> tuple[int, FakeFunctionCall, FakeEngineClient]:
        call = FakeFunctionCall(parent_name=parent_name, name=name, parent=parent, args=args)
        runtime = make_runtime(call)
        code = await Dispatcher(runtime).run()
        return code, call, runtime.client

    return run
