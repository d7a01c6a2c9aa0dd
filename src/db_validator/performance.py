"""
Round-trip and timing tracker for a single validation call.
"""

import logging
import threading
import time
from datetime import UTC, datetime

from .metrics import VALIDATION_QUERIES
from .models import PerformanceMetrics

logger = logging.getLogger(__name__)

PHASE_EXISTENCE = "existence"
PHASE_BATCH_COUNT = "batch_count"
PHASE_DETAIL = "detail"
PHASE_CATALOG = "catalog"


class PerformanceTracker:
    """
    Counts database round trips and measures elapsed time.

    One tracker is created per validation call. Detail workers record their
    own round trips, so updates are guarded by a lock.
    """

    def __init__(self):
        self.started_at = datetime.now(UTC)
        self._start = time.perf_counter()
        self._lock = threading.Lock()
        self.query_count = 0
        self.queries_by_phase: dict[str, int] = {}

    def track_query(self, phase: str, count: int = 1) -> None:
        """Record ``count`` round trips issued in ``phase``."""
        with self._lock:
            self.query_count += count
            self.queries_by_phase[phase] = self.queries_by_phase.get(phase, 0) + count
        VALIDATION_QUERIES.labels(phase=phase).inc(count)

    @property
    def elapsed_seconds(self) -> float:
        return time.perf_counter() - self._start

    def get_metrics(self, table_count: int, batched: bool) -> PerformanceMetrics:
        """Snapshot the tracked values as ``PerformanceMetrics``."""
        elapsed = self.elapsed_seconds
        metrics = PerformanceMetrics(
            query_count=self.query_count,
            table_count=table_count,
            batched=batched,
            elapsed_seconds=elapsed,
            started_at=self.started_at,
            finished_at=datetime.now(UTC),
        )
        logger.debug(
            f"Validation used {self.query_count} queries for {table_count} tables "
            f"in {elapsed:.3f}s ({self.queries_by_phase})"
        )
        return metrics
