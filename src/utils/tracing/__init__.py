"""
Distributed tracing using OpenTelemetry.

Instruments:
- Validation phases (existence probe, batch count, detail checks)
- Individual database round trips
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .database import trace_database_query
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
    "trace_database_query",
]
