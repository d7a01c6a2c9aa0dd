"""
Per-database SQL conventions used when generating validation queries.

Covers identifier quoting style, DB-API parameter placeholders, default
schema, and which metadata catalog lists the tables.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Dialect:
    """SQL conventions of one database type."""

    name: str
    quote_open: str
    quote_close: str
    placeholder: str
    default_schema: str
    # SQL Server and SQLite resolve table names case-insensitively
    case_sensitive_catalog: bool
    catalog: str

    def placeholders(self, count: int) -> str:
        """Return ``count`` comma-separated parameter placeholders."""
        return ", ".join([self.placeholder] * count)


POSTGRESQL = Dialect(
    name="postgresql",
    quote_open='"',
    quote_close='"',
    placeholder="%s",
    default_schema="public",
    case_sensitive_catalog=True,
    catalog="information_schema",
)

SQLSERVER = Dialect(
    name="sqlserver",
    quote_open="[",
    quote_close="]",
    placeholder="?",
    default_schema="dbo",
    case_sensitive_catalog=False,
    catalog="information_schema",
)

SQLITE = Dialect(
    name="sqlite",
    quote_open='"',
    quote_close='"',
    placeholder="?",
    default_schema="main",
    case_sensitive_catalog=False,
    catalog="sqlite_master",
)

DIALECTS = {d.name: d for d in (POSTGRESQL, SQLSERVER, SQLITE)}


def get_dialect(db_type: str) -> Dialect:
    """
    Look up a dialect by database type name.

    Raises:
        ValueError: If the database type is not supported
    """
    try:
        return DIALECTS[db_type.lower()]
    except (KeyError, AttributeError):
        raise ValueError(
            f"Unsupported database type: {db_type!r}. "
            f"Expected one of: {', '.join(sorted(DIALECTS))}"
        ) from None


def detect_db_type(connection: Any) -> str:
    """
    Detect database type from a DB-API connection or cursor.

    Args:
        connection: psycopg2, pyodbc or sqlite3 connection/cursor

    Returns:
        'postgresql', 'sqlserver' or 'sqlite'

    Raises:
        ValueError: If the driver is not recognised
    """
    module = type(connection).__module__
    if "psycopg" in module:
        return "postgresql"
    elif "pyodbc" in module:
        return "sqlserver"
    elif "sqlite3" in module:
        return "sqlite"
    raise ValueError(
        f"Cannot detect database type from {type(connection).__name__} "
        f"(module {module}); pass db_type explicitly"
    )
