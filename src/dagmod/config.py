"""Configuration loading: defaults, optional YAML file, environment overlay."""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from dagmod.errors import ConfigError, ConfigNotFoundError

logger = logging.getLogger(__name__)

__all__ = ["Config", "DEFAULTS", "DEFAULT_CONFIG_FILE", "ENV_KEYS"]

DEFAULTS: dict[str, Any] = {
    "session": {"port": None, "token": None, "timeout": 600.0},
    "entry": {"module": "main", "path": None},
    "logging": {"level": "info", "format": "text"},
}

# Environment variable -> dot-path key
ENV_KEYS: dict[str, str] = {
    "DAGGER_SESSION_PORT": "session.port",
    "DAGGER_SESSION_TOKEN": "session.token",
    "DAGMOD_ENTRY_MODULE": "entry.module",
    "DAGMOD_LOG_LEVEL": "logging.level",
    "DAGMOD_LOG_FORMAT": "logging.format",
}

CONFIG_ENV = "DAGMOD_CONFIG"

# Loaded from the working directory when DAGMOD_CONFIG is unset
DEFAULT_CONFIG_FILE = "dagmod.yaml"


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


class Config:
    """Configuration accessor with dot-path key support.

    Values given at construction are merged over ``DEFAULTS``.
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = _merge(copy.deepcopy(DEFAULTS), data or {})

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-path key."""
        parts = key.split(".")
        current: Any = self._data
        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return default if current is None else current

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-path key, creating sections as needed."""
        parts = key.split(".")
        current = self._data
        for part in parts[:-1]:
            nested = current.get(part)
            if not isinstance(nested, dict):
                nested = {}
                current[part] = nested
            current = nested
        current[parts[-1]] = value

    @property
    def data(self) -> dict[str, Any]:
        """A deep copy of the underlying configuration."""
        return copy.deepcopy(self._data)

    @classmethod
    def load(cls, path: str | Path) -> Config:
        """Load configuration from a YAML file.

        Raises:
            ConfigNotFoundError: If the file does not exist.
            ConfigError: If the file is not valid YAML or not a mapping.
        """
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigNotFoundError(config_path=str(config_path))

        content = config_path.read_text(encoding="utf-8")
        try:
            parsed = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(message=f"Invalid YAML in config file: {config_path}") from e

        if parsed is None:
            parsed = {}
        if not isinstance(parsed, dict):
            raise ConfigError(message=f"Config file must be a YAML mapping: {config_path}")
        return cls(parsed)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Build configuration from the environment.

        ``DAGMOD_CONFIG`` names an optional YAML file loaded first, falling
        back to ``dagmod.yaml`` in the working directory when it exists; the
        variables in ``ENV_KEYS`` override it.
        """
        env = os.environ if environ is None else environ
        config_file = env.get(CONFIG_ENV)
        if not config_file and Path(DEFAULT_CONFIG_FILE).is_file():
            config_file = DEFAULT_CONFIG_FILE
        config = cls.load(config_file) if config_file else cls()
        for var, key in ENV_KEYS.items():
            value = env.get(var)
            if value:
                config.set(key, value)
        logger.debug("Configuration loaded (config file: %s)", config_file or "none")
        return config

    def __repr__(self) -> str:
        return f"Config(entry={self.get('entry.module')!r}, port={self.get('session.port')!r})"
