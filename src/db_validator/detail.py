"""
Sample-row and full-column checks for a single table.

Both kinds of check are folded into one aggregate query per table, so a
detail check costs exactly one round trip:

- sample row i:  SUM(CASE WHEN a = ? AND b = ? THEN 1 ELSE 0 END) - rows
  matching the sample; 0 means the sample row is missing
- column c:      SUM(CASE WHEN c = ? THEN 0 ELSE 1 END) - rows whose value
  differs from the expectation (NULL counts as differing)

Expected values are always bound as parameters; only validated column and
table names are written into the SQL text.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from .dialects import Dialect
from .errors import DetailValidationError, MismatchError
from .identifiers import escape_identifier, quote_qualified
from .models import TableExpected
from .performance import PHASE_DETAIL, PerformanceTracker
from .session import DatabaseSession

logger = logging.getLogger(__name__)

SCALAR_TYPES = (str, int, float, bool, Decimal, date, datetime, time, bytes)

SAMPLE = "sample"
COLUMN = "column"


@dataclass
class DetailCheck:
    """One aggregate column of the detail query."""

    kind: str  # SAMPLE or COLUMN
    key: int | str  # sample row number (1-based) or column name
    expected: Any


@dataclass
class DetailQuery:
    sql: str
    params: list[Any]
    checks: list[DetailCheck]


@dataclass
class DetailOutcome:
    """Messages and errors produced by the detail check of one table."""

    table_name: str
    messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def _check_scalar(value: Any, where: str) -> None:
    if value is not None and not isinstance(value, SCALAR_TYPES):
        raise DetailValidationError(
            f"Unsupported expected value for {where}: {type(value).__name__} {value!r}"
        )


def _condition(column: str, value: Any, dialect: Dialect) -> tuple[str, list[Any]]:
    quoted = escape_identifier(column, dialect.name)
    if value is None:
        return f"{quoted} IS NULL", []
    return f"{quoted} = {dialect.placeholder}", [value]


def build_detail_query(
    table_name: str,
    expected: TableExpected,
    dialect: Dialect,
    schema: str,
) -> DetailQuery:
    """
    Build the single aggregate query checking samples and columns of a table.

    Raises:
        InvalidIdentifierError: If the table or a column name is invalid
        DetailValidationError: If an expectation cannot be expressed as a check
    """
    select_parts = []
    params: list[Any] = []
    checks = []

    for index, row in enumerate(expected.sample, start=1):
        if not row:
            raise DetailValidationError(f"Sample row {index} declares no columns")
        conditions = []
        for column, value in row.items():
            _check_scalar(value, f"sample row {index} column {column}")
            sql, values = _condition(column, value, dialect)
            conditions.append(sql)
            params.extend(values)
        select_parts.append(
            f"SUM(CASE WHEN {' AND '.join(conditions)} THEN 1 ELSE 0 END) AS sample_{index}"
        )
        checks.append(DetailCheck(SAMPLE, index, row))

    for position, (column, value) in enumerate(expected.columns.items(), start=1):
        _check_scalar(value, f"column {column}")
        sql, values = _condition(column, value, dialect)
        params.extend(values)
        select_parts.append(f"SUM(CASE WHEN {sql} THEN 0 ELSE 1 END) AS column_{position}")
        checks.append(DetailCheck(COLUMN, column, value))

    if not select_parts:
        raise DetailValidationError(f"Table {table_name} declares no sample or column checks")

    query = (
        f"SELECT {', '.join(select_parts)} "
        f"FROM {quote_qualified(schema, table_name, dialect.name)}"
    )
    return DetailQuery(sql=query, params=params, checks=checks)


def _as_count(value: Any) -> int:
    # SUM over zero rows is NULL
    return int(value) if value is not None else 0


def compare_samples(table_name: str, checks: list[DetailCheck], values: list[Any]) -> None:
    """Raise MismatchError listing every sample row with no matching table row."""
    missing = [
        f"row {check.key} not found: {check.expected!r}"
        for check, value in zip(checks, values)
        if check.kind == SAMPLE and _as_count(value) == 0
    ]
    if missing:
        raise MismatchError(table_name, missing)


def compare_columns(
    table_name: str, checks: list[DetailCheck], values: list[Any], row_count: int
) -> None:
    """Raise MismatchError listing every column with rows that differ."""
    differing = [
        f"column {check.key} expected {check.expected!r} "
        f"but {_as_count(value)} of {row_count} rows differ"
        for check, value in zip(checks, values)
        if check.kind == COLUMN and _as_count(value) > 0
    ]
    if differing:
        raise MismatchError(table_name, differing)


def validate_table_details(
    session: DatabaseSession,
    table_name: str,
    expected: TableExpected,
    row_count: int,
    tracker: PerformanceTracker | None = None,
) -> DetailOutcome:
    """
    Check sample rows and column values of one table in one round trip.

    Failures never propagate: invalid expectations, query errors and
    mismatches are all recorded on the returned outcome. The round trip is
    recorded on ``tracker`` only once the query has been built and is about
    to be sent.
    """
    outcome = DetailOutcome(table_name=table_name)

    try:
        detail_query = build_detail_query(
            table_name, expected, session.dialect, session.schema
        )
        if tracker is not None:
            tracker.track_query(PHASE_DETAIL)
        rows = session.fetch_all(
            detail_query.sql, detail_query.params, phase=PHASE_DETAIL, table=table_name
        )
        if not rows:
            raise DetailValidationError("detail query returned no rows")
    except Exception as e:
        logger.error(f"Detail validation failed for table {table_name}: {e}")
        outcome.errors.append(f"Detail validation failed: {e}")
        return outcome

    values = list(rows[0])
    checks = detail_query.checks

    if expected.sample:
        try:
            compare_samples(table_name, checks, values)
            outcome.messages.append("Sample data matches")
        except MismatchError as e:
            outcome.errors.extend(f"Sample data validation failed: {m}" for m in e.mismatches)

    if expected.columns:
        try:
            compare_columns(table_name, checks, values, row_count)
            outcome.messages.append("All columns match expected values")
        except MismatchError as e:
            outcome.errors.extend(f"Column validation failed: {m}" for m in e.mismatches)

    logger.debug(
        f"Detail check for {table_name}: {len(outcome.messages)} passed, "
        f"{len(outcome.errors)} failed"
    )
    return outcome
