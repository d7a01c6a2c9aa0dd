"""
Database query tracing.
"""

from opentelemetry import trace

from .context import trace_operation


def trace_database_query(phase: str, db_system: str, table: str | None = None, **extra_attrs):
    """
    Context manager for tracing one database round trip.

    Args:
        phase: Validation phase issuing the query (existence, batch_count, ...)
        db_system: Database type (postgresql, sqlserver, sqlite)
        table: Table name, for single-table queries

    Example:
        >>> with trace_database_query("detail", "postgresql", table="users"):
        ...     cursor.execute(query, params)
    """
    attributes = {
        "db.system": db_system,
        "db.operation": "SELECT",
        "validation.phase": phase,
        "component": "database",
        **extra_attrs,
    }
    if table is not None:
        attributes["db.table"] = table

    return trace_operation(f"db.{phase}", kind=trace.SpanKind.CLIENT, **attributes)
