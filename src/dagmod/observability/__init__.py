"""Observability: structured call logging and trace context propagation."""

from dagmod.observability.context_logger import ContextLogger
from dagmod.observability.tracing import extract_trace_context, trace_headers

__all__ = ["ContextLogger", "extract_trace_context", "trace_headers"]
