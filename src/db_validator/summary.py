"""
Database summary: every table in the schema with its row count.

Costs two round trips regardless of the number of tables: one catalog
listing and one batched count.
"""

import logging

from opentelemetry import trace

from utils.tracing import trace_operation

from .counts import batch_count_tables
from .errors import InvalidIdentifierError
from .existence import list_tables
from .identifiers import validate_identifier
from .performance import PerformanceTracker
from .session import DatabaseSession

logger = logging.getLogger(__name__)


def summarize_database(
    session: DatabaseSession,
    tracker: PerformanceTracker | None = None,
) -> dict[str, int]:
    """
    Count the rows of every table in the session schema.

    Tables whose names cannot be safely quoted are skipped with a warning.

    Returns:
        Mapping of table name to row count, ordered by table name

    Raises:
        MetadataQueryError: If listing tables fails
        BatchCountQueryError: If counting fails
    """
    with trace_operation(
        "summarize_database",
        kind=trace.SpanKind.INTERNAL,
        schema=session.schema,
    ):
        tables = []
        for name in list_tables(session, tracker):
            try:
                validate_identifier(name, "table name")
            except InvalidIdentifierError as e:
                logger.warning(f"Skipping table in summary: {e}")
                continue
            tables.append(name)

        counts = batch_count_tables(session, tables, tracker)
        summary = {name: counts.get(name, 0) for name in sorted(tables)}

        logger.info(
            f"Schema {session.schema}: {len(summary)} tables, "
            f"{sum(summary.values())} rows total"
        )
        return summary
