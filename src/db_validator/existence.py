"""
Table existence probing.

Tables missing from the database must be kept out of the batched count
query, otherwise that single query fails for every table at once. One
catalog query, with the table names bound as values, tells us which of the
expected tables exist.
"""

import logging
from collections.abc import Sequence

from .dialects import Dialect
from .errors import MetadataQueryError
from .identifiers import escape_identifier, validate_identifiers
from .performance import PHASE_CATALOG, PHASE_EXISTENCE, PerformanceTracker
from .session import DatabaseSession

logger = logging.getLogger(__name__)


def build_existence_query(dialect: Dialect, schema: str, table_count: int) -> tuple[str, bool]:
    """
    Build the catalog query listing which of ``table_count`` names exist.

    Returns:
        (query, binds_schema) - when ``binds_schema`` is True the schema is
        the first bound parameter, followed by the table names.
    """
    placeholders = dialect.placeholders(table_count)

    if dialect.catalog == "sqlite_master":
        # SQLite addresses the schema as an identifier, not a value
        quoted_schema = escape_identifier(schema, dialect.name)
        query = (
            f"SELECT name FROM {quoted_schema}.sqlite_master "
            f"WHERE type = 'table' AND name COLLATE NOCASE IN ({placeholders})"
        )
        return query, False

    query = (
        "SELECT table_name FROM information_schema.tables "
        f"WHERE table_schema = {dialect.placeholder} AND table_name IN ({placeholders})"
    )
    return query, True


def build_list_tables_query(dialect: Dialect, schema: str) -> tuple[str, bool]:
    """Build the catalog query listing every base table in ``schema``."""
    if dialect.catalog == "sqlite_master":
        quoted_schema = escape_identifier(schema, dialect.name)
        query = (
            f"SELECT name FROM {quoted_schema}.sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return query, False

    query = (
        "SELECT table_name FROM information_schema.tables "
        f"WHERE table_schema = {dialect.placeholder} AND table_type = 'BASE TABLE' "
        "ORDER BY table_name"
    )
    return query, True


def _match_names(
    catalog_names: list[str], table_names: Sequence[str], case_sensitive: bool
) -> set[str]:
    """Map names returned by the catalog back onto the expected spelling."""
    if case_sensitive:
        wanted = set(table_names)
        return {name for name in catalog_names if name in wanted}

    found = {name.casefold() for name in catalog_names}
    return {name for name in table_names if name.casefold() in found}


def get_existing_tables(
    session: DatabaseSession,
    table_names: Sequence[str],
    tracker: PerformanceTracker | None = None,
) -> set[str]:
    """
    Determine which of the expected tables exist, in one round trip.

    Args:
        session: Database session
        table_names: Expected table names
        tracker: Optional tracker recording the round trip

    Returns:
        Subset of ``table_names`` present in the session schema

    Raises:
        InvalidIdentifierError: If a table name fails validation
        MetadataQueryError: If the catalog query fails
    """
    if not table_names:
        return set()

    validate_identifiers(table_names, "table name")

    query, binds_schema = build_existence_query(
        session.dialect, session.schema, len(table_names)
    )
    params = [session.schema, *table_names] if binds_schema else list(table_names)

    if tracker is not None:
        tracker.track_query(PHASE_EXISTENCE)
    try:
        rows = session.fetch_all(query, params, phase=PHASE_EXISTENCE)
    except Exception as e:
        raise MetadataQueryError(
            f"Failed to check existing tables: {e}", phase="existence_check"
        ) from e

    existing = _match_names(
        [row[0] for row in rows], table_names, session.dialect.case_sensitive_catalog
    )
    missing = len(table_names) - len(existing)
    logger.info(
        f"Existence probe: {len(existing)}/{len(table_names)} tables found "
        f"in schema {session.schema}" + (f", {missing} missing" if missing else "")
    )
    return existing


def list_tables(
    session: DatabaseSession,
    tracker: PerformanceTracker | None = None,
) -> list[str]:
    """
    List all base tables in the session schema, in one round trip.

    Raises:
        MetadataQueryError: If the catalog query fails
    """
    query, binds_schema = build_list_tables_query(session.dialect, session.schema)
    params = [session.schema] if binds_schema else []

    if tracker is not None:
        tracker.track_query(PHASE_CATALOG)
    try:
        rows = session.fetch_all(query, params, phase=PHASE_CATALOG)
    except Exception as e:
        raise MetadataQueryError(f"Failed to list tables: {e}", phase="catalog") from e

    return [row[0] for row in rows]
