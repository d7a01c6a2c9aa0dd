"""
Exception hierarchy for batch table validation.

Fatal errors (identifier, metadata, batch count, cancellation) escape
``BatchValidator.validate_tables_in_batch`` and no report is produced.
Detail and mismatch errors are caught per table and recorded in that
table's ``errors`` list.
"""


class DatabaseValidationError(Exception):
    """Base exception for database validation errors."""

    def __init__(self, message: str, phase: str | None = None):
        super().__init__(message)
        self.phase = phase


class InvalidIdentifierError(DatabaseValidationError, ValueError):
    """Raised when a table or column name fails the identifier allow-list."""

    def __init__(self, identifier: str, kind: str, reason: str):
        super().__init__(f"Invalid {kind} {identifier!r}: {reason}")
        self.identifier = identifier
        self.kind = kind


class MetadataQueryError(DatabaseValidationError):
    """Raised when the table existence probe fails."""


class BatchCountQueryError(DatabaseValidationError):
    """Raised when the batched UNION ALL count query fails."""


class DetailValidationError(DatabaseValidationError):
    """Raised when a sample/column check for one table cannot be performed."""


class MismatchError(DatabaseValidationError):
    """Raised when actual table contents differ from the expectations."""

    def __init__(self, table: str, mismatches: list[str]):
        super().__init__(f"{len(mismatches)} mismatch(es) in table {table}")
        self.table = table
        self.mismatches = list(mismatches)


class CancellationError(DatabaseValidationError):
    """Raised when validation is cancelled via cancellation token."""


class ExpectationConfigError(DatabaseValidationError, ValueError):
    """Raised when an expectation document or value is malformed."""
