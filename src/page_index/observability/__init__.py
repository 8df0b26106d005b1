"""Observability module: structured logging, tracing and metrics."""

from page_index.observability.context import get_trace_context, set_trace_context, trace_context
from page_index.observability.logging import JsonFormatter, configure_logging
from page_index.observability.metrics import (
    INDEX_ERRORS,
    INDEX_LATENCY,
    LOCATIONS_RECORDED,
    PAGES_INDEXED,
    WORDS_CREATED,
    get_metrics,
    track_latency,
)
from page_index.observability.tracing import create_span, get_tracer, init_tracing


__all__ = [
    "INDEX_ERRORS",
    "INDEX_LATENCY",
    "LOCATIONS_RECORDED",
    "PAGES_INDEXED",
    "WORDS_CREATED",
    "JsonFormatter",
    "configure_logging",
    "create_span",
    "get_metrics",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
    "track_latency",
]
