"""Tests for ContextLogger."""

from __future__ import annotations

import io
import json

from dagmod.config import Config
from dagmod.observability.context_logger import ContextLogger


# --- Creation ---


class TestContextLoggerCreation:
    """ContextLogger instantiation and binding."""

    def test_bind_returns_new_logger(self):
        """bind() leaves the original logger untouched."""
        buf = io.StringIO()
        logger = ContextLogger(name="test", output=buf)
        bound = logger.bind("Greeter", "hello")
        assert bound is not logger
        logger.info("plain")
        bound.info("bound")
        lines = buf.getvalue().splitlines()
        assert "[-.-] plain" in lines[0]
        assert "[Greeter.hello] bound" in lines[1]

    def test_bind_keeps_existing_names(self):
        """Binding only a function keeps the bound object name."""
        buf = io.StringIO()
        logger = ContextLogger(name="test", output=buf).bind("Greeter").bind(function_name="shout")
        logger.info("x")
        assert "[Greeter.shout] x" in buf.getvalue()

    def test_from_config(self):
        """Format and level are read from the logging section."""
        buf = io.StringIO()
        config = Config({"logging": {"format": "json", "level": "error"}})
        logger = ContextLogger.from_config(config, "cfg", output=buf)
        logger.info("hidden")
        logger.error("shown")
        data = json.loads(buf.getvalue())
        assert data["message"] == "shown"
        assert data["logger"] == "cfg"


# --- Level filtering ---


class TestContextLoggerLevels:
    """Log level filtering."""

    def test_debug_suppressed_at_info_level(self):
        """debug() is not emitted when level='info'."""
        buf = io.StringIO()
        logger = ContextLogger(name="test", level="info", output=buf)
        logger.debug("should not appear")
        assert buf.getvalue() == ""

    def test_all_level_filtering(self):
        """Levels from the threshold upward are emitted."""
        levels = ["debug", "info", "warn", "error"]
        for i, threshold in enumerate(levels):
            buf = io.StringIO()
            logger = ContextLogger(name="test", level=threshold, output=buf)
            for emit_level in levels:
                getattr(logger, emit_level)(f"msg at {emit_level}")
            lines = [line for line in buf.getvalue().split("\n") if line]
            assert len(lines) == len(levels) - i

    def test_unknown_level_defaults_to_info(self):
        buf = io.StringIO()
        logger = ContextLogger(name="test", level="chatty", output=buf)
        logger.debug("no")
        logger.info("yes")
        assert buf.getvalue().count("\n") == 1


# --- Formats ---


class TestContextLoggerFormats:
    """Text and JSON line output."""

    def test_json_includes_all_fields(self):
        """JSON lines carry timestamp, level, message, object, function, logger and extra."""
        buf = io.StringIO()
        logger = ContextLogger(name="mylog", format="json", output=buf).bind("Project", "describe")
        logger.warn("slow call", extra={"duration_ms": 12.5})
        data = json.loads(buf.getvalue())
        assert "timestamp" in data
        assert data["level"] == "warn"
        assert data["message"] == "slow call"
        assert data["object"] == "Project"
        assert data["function"] == "describe"
        assert data["logger"] == "mylog"
        assert data["extra"] == {"duration_ms": 12.5}

    def test_non_serializable_extras(self):
        """Non-serializable extras are rendered with str()."""
        buf = io.StringIO()
        logger = ContextLogger(name="test", format="json", output=buf)

        class Custom:
            def __str__(self) -> str:
                return "custom-obj"

        logger.info("test", extra={"obj": Custom()})
        assert json.loads(buf.getvalue())["extra"]["obj"] == "custom-obj"

    def test_text_format(self):
        """Text lines show level, target, message and key=value extras."""
        buf = io.StringIO()
        logger = ContextLogger(name="test", output=buf).bind("Greeter", "hello")
        logger.error("Function call failed", extra={"error_type": "ValueError"})
        line = buf.getvalue().strip()
        assert line.endswith("[ERROR] [Greeter.hello] Function call failed error_type=ValueError")
