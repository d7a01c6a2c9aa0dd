"""
Batch table validation engine.

``BatchValidator`` checks a live database against an ``ExpectedConfig``
using as few round trips as possible:

1. every table and column name is validated (no query is issued if one fails)
2. one catalog query finds which expected tables exist
3. one UNION ALL query counts all existing tables
4. tables with rows and sample/column expectations get one detail query
   each, run concurrently on a bounded worker pool
5. count and detail outcomes are merged into a ``BatchValidationResult``

For T expected tables of which D need detail checks, a call issues
``1 + (1 if any table exists else 0) + D`` queries. A table whose
expectations cannot be turned into a detail query records the error without
a round trip, and is not counted.
"""

import logging
import threading
from collections.abc import Mapping
from enum import Enum
from typing import Any

from opentelemetry import trace

from utils.tracing import add_span_attributes, add_span_event, trace_operation

from .aggregate import build_batch_result, count_result
from .counts import batch_count_tables
from .errors import CancellationError, DatabaseValidationError
from .existence import get_existing_tables
from .identifiers import validate_identifier
from .metrics import VALIDATION_RUN_TIME
from .models import BatchValidationResult, ExpectedConfig
from .parallel import DEFAULT_MAX_CONCURRENCY, ConcurrentDetailValidator
from .performance import PerformanceTracker
from .session import DatabaseSession

logger = logging.getLogger(__name__)


class ValidationPhase(str, Enum):
    """Lifecycle of one validation call."""

    IDLE = "idle"
    EXISTENCE_CHECK = "existence_check"
    BATCH_COUNT = "batch_count"
    CONCURRENT_DETAIL = "concurrent_detail"
    AGGREGATED = "aggregated"
    DONE = "done"
    FAILED = "failed"


def validate_expectation_identifiers(expected: ExpectedConfig) -> None:
    """
    Validate every table and column name used by the expectations.

    Raises:
        InvalidIdentifierError: On the first name failing the allow-list
    """
    for table_name, table_expected in expected.tables.items():
        validate_identifier(table_name, "table name")
        for row in table_expected.sample:
            for column in row:
                validate_identifier(column, f"column name in {table_name} sample")
        for column in table_expected.columns:
            validate_identifier(column, f"column name in {table_name} columns")


class BatchValidator:
    """
    Validates expected table state against a database with batched queries.

    The validator holds no per-call state; each call builds its own tracker
    and result objects, so one instance can be reused.
    """

    def __init__(
        self,
        session: DatabaseSession,
        database_id: str = "",
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        """
        Args:
            session: Database session to validate against
            database_id: Identifier reported in the result
            max_concurrency: Maximum simultaneous detail queries (default: 5)
        """
        self.session = session
        self.database_id = database_id
        self.detail_validator = ConcurrentDetailValidator(session, max_concurrency)

        logger.info(
            f"BatchValidator initialized: db_type={session.db_type}, "
            f"schema={session.schema}, max_concurrency={max_concurrency}"
        )

    @property
    def max_concurrency(self) -> int:
        return self.detail_validator.max_concurrency

    def validate_tables_in_batch(
        self,
        expected_config: ExpectedConfig | Mapping[str, Any],
        cancellation_token: threading.Event | None = None,
    ) -> BatchValidationResult:
        """
        Validate all expected tables.

        Args:
            expected_config: Expectations, as ``ExpectedConfig`` or a mapping
                accepted by ``ExpectedConfig.from_dict``
            cancellation_token: Event that aborts the call when set

        Returns:
            Report with one result per expected table

        Raises:
            InvalidIdentifierError: A table/column name failed validation
            MetadataQueryError: The existence probe failed
            BatchCountQueryError: The batch count query failed
            CancellationError: The token was set before the call finished
        """
        if not isinstance(expected_config, ExpectedConfig):
            expected_config = ExpectedConfig.from_dict(expected_config)

        tracker = PerformanceTracker()
        phase = ValidationPhase.IDLE
        table_names = sorted(expected_config.tables)

        with trace_operation(
            "validate_tables_in_batch",
            kind=trace.SpanKind.INTERNAL,
            database_id=self.database_id,
            table_count=len(table_names),
        ), VALIDATION_RUN_TIME.time():
            try:
                validate_expectation_identifiers(expected_config)

                if not table_names:
                    logger.warning("No tables to validate")
                    return build_batch_result(
                        self.database_id, {}, {}, tracker.get_metrics(0, batched=False)
                    )

                phase = ValidationPhase.EXISTENCE_CHECK
                self._check_cancelled(cancellation_token, phase)
                existing = get_existing_tables(self.session, table_names, tracker)
                add_span_event(
                    "existence_checked",
                    existing=len(existing),
                    missing=len(table_names) - len(existing),
                )

                phase = ValidationPhase.BATCH_COUNT
                self._check_cancelled(cancellation_token, phase)
                counts = batch_count_tables(self.session, sorted(existing), tracker)

                count_results = {
                    name: count_result(
                        name, expected_config.tables[name], name in existing, counts.get(name)
                    )
                    for name in table_names
                }

                needs_detail = {
                    name: expected_config.tables[name]
                    for name in table_names
                    if count_results[name].row_count > 0
                    and expected_config.tables[name].needs_detail
                }

                detail_outcomes = {}
                if needs_detail:
                    phase = ValidationPhase.CONCURRENT_DETAIL
                    self._check_cancelled(cancellation_token, phase)
                    detail_outcomes = self.detail_validator.validate(
                        needs_detail, counts, cancellation_token, tracker=tracker
                    )

                phase = ValidationPhase.AGGREGATED
                result = build_batch_result(
                    self.database_id,
                    count_results,
                    detail_outcomes,
                    tracker.get_metrics(len(table_names), batched=bool(existing)),
                )

            except DatabaseValidationError as e:
                if e.phase is None:
                    e.phase = phase.value
                add_span_attributes(phase=ValidationPhase.FAILED.value, failed_phase=e.phase)
                logger.error(
                    f"Validation of {self.database_id or 'database'} failed "
                    f"during {e.phase}: {e}"
                )
                raise

            phase = ValidationPhase.DONE
            add_span_attributes(
                phase=phase.value,
                success=result.success,
                query_count=result.performance.query_count,
                failed_tables=len(result.failed_tables),
            )
            logger.info(
                f"Validation {'passed' if result.success else 'failed'}: "
                f"{len(table_names) - len(result.failed_tables)}/{len(table_names)} tables OK, "
                f"{result.performance.query_count} queries",
                extra={"database_id": self.database_id},
            )
            for name in result.failed_tables:
                logger.warning(
                    f"Table {name} failed validation: {'; '.join(result.results[name].errors)}"
                )
            return result

    @staticmethod
    def _check_cancelled(token: threading.Event | None, phase: ValidationPhase) -> None:
        if token is not None and token.is_set():
            raise CancellationError(f"Validation cancelled before {phase.value}", phase=phase.value)


def validate_database(
    session: DatabaseSession,
    expected_config: ExpectedConfig | Mapping[str, Any],
    database_id: str = "",
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    cancellation_token: threading.Event | None = None,
) -> BatchValidationResult:
    """
    Validate a database in one call.

    Example:
        >>> session = DatabaseSession(connection=conn)
        >>> result = validate_database(session, {"users": {"count": 3}})
        >>> result.success
        True
    """
    validator = BatchValidator(session, database_id=database_id, max_concurrency=max_concurrency)
    return validator.validate_tables_in_batch(expected_config, cancellation_token)
