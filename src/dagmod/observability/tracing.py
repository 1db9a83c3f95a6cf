"""Trace context propagation from the engine into outgoing engine requests."""

from __future__ import annotations

import logging
import os
from typing import Mapping

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

__all__ = ["TRACE_ENV", "extract_trace_context", "trace_headers"]

_logger = logging.getLogger(__name__)

# Environment variable -> W3C header carrying it
TRACE_ENV: dict[str, str] = {
    "TRACEPARENT": "traceparent",
    "TRACESTATE": "tracestate",
}

_propagator = TraceContextTextMapPropagator()


def extract_trace_context(environ: Mapping[str, str] | None = None) -> Context:
    """Read the caller's W3C trace context that the engine exports to the module."""
    env = os.environ if environ is None else environ
    carrier = {header: env[var] for var, header in TRACE_ENV.items() if env.get(var)}
    return _propagator.extract(carrier)


def trace_headers(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Headers that make engine requests join the caller's trace.

    Empty when the environment carries no valid ``TRACEPARENT``.
    """
    context = extract_trace_context(environ)
    if not trace.get_current_span(context).get_span_context().is_valid:
        return {}
    headers: dict[str, str] = {}
    _propagator.inject(headers, context=context)
    _logger.debug("Propagating trace context: %s", headers.get("traceparent"))
    return headers
