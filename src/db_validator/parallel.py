"""
Concurrent detail validation with a bounded worker pool.

Tables needing sample/column checks are validated on a ThreadPoolExecutor
whose size caps the number of simultaneous detail queries. Failures are
isolated per table and every scheduled task runs to completion; only a
caller-supplied cancellation token stops the phase early.

On cancellation, queued tasks are dropped and the tasks already running
(at most one query each) are waited for, so every pooled connection has been
returned and no result is written once ``CancellationError`` is raised.
Sessions bound to one thread (a single sqlite3 connection) run their tasks
one by one on the calling thread instead.
"""

import logging
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait

from opentelemetry import trace

from utils.tracing import trace_operation

from .detail import DetailOutcome, validate_table_details
from .errors import CancellationError
from .metrics import DETAIL_ACTIVE_TASKS
from .models import TableExpected
from .performance import PerformanceTracker
from .session import DatabaseSession

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5


class ConcurrentDetailValidator:
    """
    Runs per-table detail checks concurrently.

    Each task writes only its own table's slot in a shared result dict,
    guarded by a single lock.
    """

    def __init__(
        self,
        session: DatabaseSession,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        poll_interval: float = 0.05,
    ):
        """
        Args:
            session: Database session the detail queries run on
            max_concurrency: Maximum simultaneous detail queries (default: 5)
            poll_interval: Seconds between cancellation checks while waiting
        """
        if not isinstance(max_concurrency, int) or max_concurrency < 1:
            raise ValueError(f"max_concurrency must be a positive integer, got {max_concurrency!r}")

        self.session = session
        self.max_concurrency = max_concurrency
        self.poll_interval = poll_interval

    def validate(
        self,
        tables: Mapping[str, TableExpected],
        row_counts: Mapping[str, int],
        cancellation_token: threading.Event | None = None,
        tracker: PerformanceTracker | None = None,
    ) -> dict[str, DetailOutcome]:
        """
        Validate sample rows and columns of every given table.

        Args:
            tables: Qualifying tables and their expectations
            row_counts: Actual row counts from the batch count phase
            cancellation_token: Event that aborts the phase when set
            tracker: Optional tracker recording each detail round trip

        Returns:
            Mapping of table name to its detail outcome, one per table

        Raises:
            CancellationError: If the token is set before all tasks finish
        """
        results: dict[str, DetailOutcome] = {}
        if not tables:
            return results

        results_lock = threading.Lock()
        token = cancellation_token or threading.Event()

        def run_task(table_name: str, expected: TableExpected) -> None:
            if token.is_set():
                raise CancellationError(
                    f"Task cancelled before starting for table {table_name}",
                    phase="concurrent_detail",
                )
            DETAIL_ACTIVE_TASKS.inc()
            try:
                outcome = validate_table_details(
                    self.session,
                    table_name,
                    expected,
                    row_counts.get(table_name, 0),
                    tracker=tracker,
                )
            finally:
                DETAIL_ACTIVE_TASKS.dec()

            with results_lock:
                results[table_name] = outcome

        with trace_operation(
            "concurrent_detail_validation",
            kind=trace.SpanKind.INTERNAL,
            table_count=len(tables),
            max_concurrency=self.max_concurrency,
            thread_bound=self.session.thread_bound,
        ):
            if self.session.thread_bound:
                logger.info(
                    f"Starting detail validation of {len(tables)} tables "
                    "on the calling thread"
                )
                for name, expected in sorted(tables.items()):
                    run_task(name, expected)
            else:
                logger.info(
                    f"Starting detail validation of {len(tables)} tables "
                    f"with {self.max_concurrency} workers"
                )
                self._run_pool(run_task, tables, token)

        failed = sum(1 for outcome in results.values() if not outcome.success)
        logger.info(
            f"Detail validation complete: {len(results) - failed} passed, "
            f"{failed} failed out of {len(tables)} tables"
        )
        return results

    def _run_pool(
        self,
        run_task: Callable[[str, TableExpected], None],
        tables: Mapping[str, TableExpected],
        token: threading.Event,
    ) -> None:
        executor = ThreadPoolExecutor(
            max_workers=self.max_concurrency, thread_name_prefix="detail-validator"
        )
        cancelled = False
        try:
            future_to_table = {
                executor.submit(run_task, name, expected): name
                for name, expected in sorted(tables.items())
            }
            pending = set(future_to_table)

            while pending:
                done, pending = wait(
                    pending, timeout=self.poll_interval, return_when=FIRST_COMPLETED
                )
                if token.is_set():
                    cancelled = True
                    raise CancellationError(
                        f"Detail validation cancelled with {len(pending)} tasks outstanding",
                        phase="concurrent_detail",
                    )
                for future in done:
                    # run_task records its own failures; only cancellation surfaces here
                    try:
                        future.result()
                    except CancellationError:
                        cancelled = True
                        raise
        finally:
            # Running tasks finish their single query before the error propagates
            executor.shutdown(wait=True, cancel_futures=cancelled)
