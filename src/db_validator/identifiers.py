"""
SQL identifier validation and quoting for SQL injection protection.

Table and column names cannot be bound as query parameters, so every name
that ends up in generated SQL text must first pass the allow-list in
``validate_identifier`` and is then quoted with ``escape_identifier``.
"""

import re

from .dialects import get_dialect
from .errors import InvalidIdentifierError

# Strict ASCII-only pattern (no Unicode via \w)
VALID_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")

MAX_IDENTIFIER_LENGTH = 128


def validate_identifier(identifier: str, kind: str = "identifier") -> None:
    """
    Validate a SQL identifier (table name, column name, schema name).

    Args:
        identifier: The identifier to validate
        kind: What the identifier names, used in error messages

    Raises:
        InvalidIdentifierError: If the identifier is empty, too long or
            contains characters outside [A-Za-z0-9_]
    """
    if not isinstance(identifier, str):
        raise InvalidIdentifierError(
            str(identifier), kind, f"must be a string, got {type(identifier).__name__}"
        )

    if not identifier:
        raise InvalidIdentifierError(identifier, kind, "cannot be empty")

    if len(identifier) > MAX_IDENTIFIER_LENGTH:
        raise InvalidIdentifierError(
            identifier,
            kind,
            f"exceeds maximum length of {MAX_IDENTIFIER_LENGTH} characters",
        )

    if not VALID_IDENTIFIER_PATTERN.fullmatch(identifier):
        raise InvalidIdentifierError(
            identifier,
            kind,
            "only ASCII letters, digits, and underscores are allowed",
        )


def validate_identifiers(identifiers, kind: str = "identifier") -> None:
    """Validate every identifier in an iterable, failing on the first bad one."""
    for identifier in identifiers:
        validate_identifier(identifier, kind)


def escape_identifier(identifier: str, db_type: str = "postgresql") -> str:
    """
    Safely quote a SQL identifier after validation.

    Args:
        identifier: Table or column name
        db_type: Database type selecting the quoting style

    Returns:
        Quoted identifier, e.g. "users" (PostgreSQL, SQLite) or [users] (SQL Server)

    Raises:
        InvalidIdentifierError: If the identifier is invalid
    """
    validate_identifier(identifier)
    dialect = get_dialect(db_type)

    # Closing quote characters are doubled; the allow-list already rules them out.
    escaped = identifier.replace(dialect.quote_close, dialect.quote_close * 2)
    return f"{dialect.quote_open}{escaped}{dialect.quote_close}"


def quote_qualified(schema: str, identifier: str, db_type: str = "postgresql") -> str:
    """
    Quote a schema-qualified table name.

    Args:
        schema: Schema name (e.g. "public", "dbo", "main")
        identifier: Table name

    Returns:
        Quoted "schema"."table" reference
    """
    return f"{escape_identifier(schema, db_type)}.{escape_identifier(identifier, db_type)}"
