"""
Batch table validation for end-to-end database tests.

Checks a live database against declared expectations (row counts, sample
rows, column values) with a minimal number of round trips:

- identifiers: allow-list validation and quoting of table/column names
- existence: one catalog query finding which expected tables exist
- counts: one UNION ALL query counting every existing table
- parallel: bounded concurrent sample/column checks
- aggregate: merging everything into a BatchValidationResult

Usage:
    from db_validator import DatabaseSession, BatchValidator, load_expected_config

    session = DatabaseSession(connection=conn)
    result = BatchValidator(session, database_id="primary").validate_tables_in_batch(
        load_expected_config("expected-primary.yaml")
    )
"""

from .config import ValidatorSettings, load_expected_config, parse_expected_config
from .connection import connect, open_session
from .errors import (
    BatchCountQueryError,
    CancellationError,
    DatabaseValidationError,
    DetailValidationError,
    ExpectationConfigError,
    InvalidIdentifierError,
    MetadataQueryError,
    MismatchError,
)
from .identifiers import escape_identifier, validate_identifier
from .models import (
    BatchValidationResult,
    ExpectedConfig,
    PerformanceMetrics,
    TableExpected,
    TableValidationResult,
)
from .report import export_report_json, report_to_json
from .session import DatabaseSession
from .summary import summarize_database
from .validator import BatchValidator, ValidationPhase, validate_database

__version__ = "1.0.0"
__all__ = [
    "BatchValidator",
    "validate_database",
    "ValidationPhase",
    "DatabaseSession",
    "summarize_database",
    "ExpectedConfig",
    "TableExpected",
    "TableValidationResult",
    "BatchValidationResult",
    "PerformanceMetrics",
    "ValidatorSettings",
    "load_expected_config",
    "parse_expected_config",
    "connect",
    "open_session",
    "validate_identifier",
    "escape_identifier",
    "export_report_json",
    "report_to_json",
    "DatabaseValidationError",
    "InvalidIdentifierError",
    "MetadataQueryError",
    "BatchCountQueryError",
    "DetailValidationError",
    "MismatchError",
    "CancellationError",
    "ExpectationConfigError",
]
