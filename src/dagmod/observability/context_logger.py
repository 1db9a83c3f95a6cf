"""Structured call lifecycle logging to stderr."""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import Any

__all__ = ["ContextLogger"]

_LEVELS = {
    "debug": 10,
    "info": 20,
    "warn": 30,
    "warning": 30,
    "error": 40,
}


class ContextLogger:
    """Structured logger that stamps every record with the current call.

    Records go to stderr so they never mix with anything the engine reads.
    ``format`` is ``"text"`` or ``"json"`` (one JSON object per line).
    """

    def __init__(
        self,
        name: str,
        format: str = "text",
        level: str = "info",
        output: Any = None,
    ) -> None:
        self._name = name
        self._format = format
        self._level_value = _LEVELS.get(level.lower(), 20)
        self._output = output if output is not None else sys.stderr
        self._object: str | None = None
        self._function: str | None = None

    def bind(self, object_name: str | None = None, function_name: str | None = None) -> ContextLogger:
        """Return a logger that injects the given object and function names."""
        bound = ContextLogger(self._name, output=self._output)
        bound._format = self._format
        bound._level_value = self._level_value
        bound._object = object_name if object_name is not None else self._object
        bound._function = function_name if function_name is not None else self._function
        return bound

    @classmethod
    def from_config(cls, config: Any, name: str, output: Any = None) -> ContextLogger:
        return cls(
            name=name,
            format=config.get("logging.format", "text"),
            level=config.get("logging.level", "info"),
            output=output,
        )

    def _emit(self, level_name: str, message: str, extra: dict[str, Any] | None) -> None:
        if _LEVELS.get(level_name, 20) < self._level_value:
            return

        now = datetime.now(timezone.utc)
        if self._format == "json":
            entry = {
                "timestamp": now.isoformat(),
                "level": level_name,
                "message": message,
                "object": self._object,
                "function": self._function,
                "logger": self._name,
                "extra": extra,
            }
            self._output.write(json.dumps(entry, default=str) + "\n")
        else:
            ts = now.strftime("%Y-%m-%d %H:%M:%S")
            target = f"{self._object or '-'}.{self._function or '-'}"
            extras_str = ""
            if extra:
                extras_str = " " + " ".join(f"{k}={v}" for k, v in extra.items())
            self._output.write(f"{ts} [{level_name.upper()}] [{target}] {message}{extras_str}\n")
        self._output.flush()

    def debug(self, message: str, extra: dict[str, Any] | None = None) -> None:
        self._emit("debug", message, extra)

    def info(self, message: str, extra: dict[str, Any] | None = None) -> None:
        self._emit("info", message, extra)

    def warn(self, message: str, extra: dict[str, Any] | None = None) -> None:
        self._emit("warn", message, extra)

    def error(self, message: str, extra: dict[str, Any] | None = None) -> None:
        self._emit("error", message, extra)
