"""
Unit tests for the per-call performance tracker.
"""

import threading

from prometheus_client import REGISTRY

from db_validator.performance import (
    PHASE_BATCH_COUNT,
    PHASE_DETAIL,
    PHASE_EXISTENCE,
    PerformanceTracker,
)


def query_counter(phase):
    return REGISTRY.get_sample_value("db_validator_queries_total", {"phase": phase}) or 0.0


class TestPerformanceTracker:
    """Test round-trip accounting"""

    def test_starts_empty(self):
        tracker = PerformanceTracker()

        assert tracker.query_count == 0
        assert tracker.queries_by_phase == {}
        assert tracker.started_at.tzinfo is not None

    def test_track_query_by_phase(self):
        tracker = PerformanceTracker()

        tracker.track_query(PHASE_EXISTENCE)
        tracker.track_query(PHASE_BATCH_COUNT)
        tracker.track_query(PHASE_DETAIL, 3)

        assert tracker.query_count == 5
        assert tracker.queries_by_phase == {"existence": 1, "batch_count": 1, "detail": 3}

    def test_track_query_increments_prometheus_counter(self):
        before = query_counter(PHASE_DETAIL)

        PerformanceTracker().track_query(PHASE_DETAIL, 2)

        assert query_counter(PHASE_DETAIL) == before + 2

    def test_track_query_from_many_threads(self):
        """Test that detail workers can record round trips concurrently"""
        tracker = PerformanceTracker()

        def record():
            for _ in range(200):
                tracker.track_query(PHASE_DETAIL)

        workers = [threading.Thread(target=record) for _ in range(8)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert tracker.query_count == 1600
        assert tracker.queries_by_phase == {"detail": 1600}

    def test_trackers_are_independent(self):
        first = PerformanceTracker()
        first.track_query(PHASE_EXISTENCE)

        assert PerformanceTracker().query_count == 0

    def test_get_metrics(self):
        tracker = PerformanceTracker()
        tracker.track_query(PHASE_EXISTENCE)
        tracker.track_query(PHASE_BATCH_COUNT)

        metrics = tracker.get_metrics(table_count=4, batched=True)

        assert metrics.query_count == 2
        assert metrics.table_count == 4
        assert metrics.batched is True
        assert metrics.elapsed_seconds >= 0
        assert metrics.finished_at >= metrics.started_at
