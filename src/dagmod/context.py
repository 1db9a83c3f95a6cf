"""Per-process runtime context owning the client, registry and docstring index."""

from __future__ import annotations

import logging
import os
from typing import Callable

from dagmod.client.base import EngineClient
from dagmod.client.session import connect
from dagmod.config import Config
from dagmod.observability.context_logger import ContextLogger
from dagmod.registry.docs import DocIndex
from dagmod.registry.registry import Registry

logger = logging.getLogger(__name__)

__all__ = ["Runtime"]


class Runtime:
    """Everything one module invocation needs, created once at startup.

    The client and the registry are built lazily on first access and
    reused afterwards.
    """

    def __init__(
        self,
        config: Config,
        client: EngineClient | None = None,
        registry: Registry | None = None,
        client_factory: Callable[[Config], EngineClient] | None = None,
        docs: DocIndex | None = None,
        call_logger: ContextLogger | None = None,
    ) -> None:
        self.config = config
        self.docs = docs if docs is not None else DocIndex()
        self.call_logger = call_logger if call_logger is not None else ContextLogger.from_config(config, "dagmod.call")
        self._client = client
        self._registry = registry
        self._client_factory = client_factory if client_factory is not None else connect

    @classmethod
    def create(
        cls,
        config: Config | None = None,
        client: EngineClient | None = None,
        registry: Registry | None = None,
    ) -> Runtime:
        """Create a runtime, reading configuration from the environment when none is given."""
        return cls(config=config if config is not None else Config.from_env(), client=client, registry=registry)

    @property
    def client(self) -> EngineClient:
        """The engine client.

        Raises:
            SessionError: If the session is not configured.
        """
        if self._client is None:
            self._client = self._client_factory(self.config)
            logger.debug("Engine client created")
        return self._client

    @property
    def registry(self) -> Registry:
        """The registry of the entry module.

        Raises:
            DiscoveryError: If the entry module cannot be loaded.
            UnsupportedTypeError: If an exposed type cannot be mapped.
        """
        if self._registry is None:
            entry = self.config.get("entry.module", "main")
            search_path = self.config.get("entry.path") or os.getcwd()
            self._registry = Registry.from_entry_module(entry, docs=self.docs, search_path=search_path)
        return self._registry

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
