"""
Merging count-phase and detail-phase outcomes into the final report.

A table passes when it exists, its row count equals the expectation, and
its detail check (if any) recorded no errors. Success is never stored; it is
derived from the recorded errors.
"""

from collections.abc import Mapping

from .detail import DetailOutcome
from .metrics import VALIDATION_TABLES
from .models import (
    BatchValidationResult,
    PerformanceMetrics,
    TableExpected,
    TableValidationResult,
)

TABLE_NOT_FOUND = "Table not found in database"


def count_result(
    table_name: str,
    expected: TableExpected,
    exists: bool,
    actual_count: int | None,
) -> TableValidationResult:
    """Build a table's result from the existence and batch count phases."""
    result = TableValidationResult(table_name=table_name)

    if not exists:
        result.errors.append(TABLE_NOT_FOUND)
        return result

    if actual_count is None:
        result.errors.append("Row count missing from batch count result")
        return result

    result.row_count = actual_count
    if actual_count == expected.count:
        result.messages.append(f"Row count matches: {actual_count} rows")
    else:
        result.errors.append(
            f"Expected {expected.count} rows but found {actual_count} rows"
        )
    return result


def merge_detail(result: TableValidationResult, outcome: DetailOutcome) -> TableValidationResult:
    """Append a detail outcome's messages and errors to the table result."""
    result.messages.extend(outcome.messages)
    result.errors.extend(outcome.errors)
    return result


def build_batch_result(
    database_id: str,
    count_results: Mapping[str, TableValidationResult],
    detail_outcomes: Mapping[str, DetailOutcome],
    performance: PerformanceMetrics,
) -> BatchValidationResult:
    """
    Assemble the report: one entry per expected table, details merged in.
    """
    results = {}
    for table_name in sorted(count_results):
        result = count_results[table_name]
        outcome = detail_outcomes.get(table_name)
        if outcome is not None:
            merge_detail(result, outcome)
        results[table_name] = result
        VALIDATION_TABLES.labels(status="passed" if result.success else "failed").inc()

    return BatchValidationResult(
        database_id=database_id,
        results=results,
        performance=performance,
    )
