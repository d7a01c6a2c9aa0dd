"""
Batched row counting.

All existing expected tables are counted by one UNION ALL query, so N tables
cost one round trip instead of N.
"""

import logging
from collections.abc import Sequence

from .dialects import Dialect
from .errors import BatchCountQueryError
from .identifiers import quote_qualified, validate_identifiers
from .performance import PHASE_BATCH_COUNT, PerformanceTracker
from .session import DatabaseSession

logger = logging.getLogger(__name__)


def build_batch_count_query(
    table_names: Sequence[str], dialect: Dialect, schema: str
) -> str:
    """
    Build one UNION ALL query counting every table in ``table_names``.

    Each branch labels its count with the table name as a string literal;
    names are validated first, so the literal cannot contain quotes.

    Example:
        SELECT 'users' AS table_name, COUNT(*) AS row_count FROM "public"."users"
        UNION ALL SELECT 'orders' AS table_name, COUNT(*) AS row_count FROM "public"."orders"

    Raises:
        InvalidIdentifierError: If any name fails validation
        ValueError: If ``table_names`` is empty
    """
    if not table_names:
        raise ValueError("Cannot build a batch count query for zero tables")

    validate_identifiers(table_names, "table name")

    parts = [
        f"SELECT '{name}' AS table_name, COUNT(*) AS row_count "
        f"FROM {quote_qualified(schema, name, dialect.name)}"
        for name in table_names
    ]
    return " UNION ALL ".join(parts)


def batch_count_tables(
    session: DatabaseSession,
    table_names: Sequence[str],
    tracker: PerformanceTracker | None = None,
) -> dict[str, int]:
    """
    Count rows of all given (existing) tables in a single round trip.

    Args:
        session: Database session
        table_names: Names of tables known to exist
        tracker: Optional tracker recording the round trip

    Returns:
        Mapping of table name to row count; empty (and no query issued) when
        ``table_names`` is empty

    Raises:
        InvalidIdentifierError: If a table name fails validation
        BatchCountQueryError: If the query fails or returns malformed rows
    """
    if not table_names:
        logger.debug("No existing tables to count, skipping batch count query")
        return {}

    ordered = sorted(table_names)
    query = build_batch_count_query(ordered, session.dialect, session.schema)

    if tracker is not None:
        tracker.track_query(PHASE_BATCH_COUNT)
    try:
        rows = session.fetch_all(query, phase=PHASE_BATCH_COUNT)
    except Exception as e:
        raise BatchCountQueryError(
            f"Failed to batch count tables: {e}", phase="batch_count"
        ) from e

    counts = {}
    try:
        for table_name, row_count in rows:
            counts[str(table_name)] = int(row_count)
    except (TypeError, ValueError) as e:
        raise BatchCountQueryError(
            f"Error parsing batch count row: {e}", phase="batch_count"
        ) from e

    logger.info(f"Batch counted {len(counts)} tables in one query")
    return counts
