"""
Prometheus metrics for batch table validation.

Tracks database round trips per phase, table outcomes, run duration and
in-flight detail tasks.
"""

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

try:
    VALIDATION_QUERIES = Counter(
        "db_validator_queries_total",
        "Database round trips issued by table validation",
        ["phase"],  # existence, batch_count, detail, catalog
        registry=REGISTRY
    )
except ValueError:
    # Metric already registered, get existing one
    VALIDATION_QUERIES = REGISTRY._names_to_collectors.get("db_validator_queries_total")

try:
    VALIDATION_TABLES = Counter(
        "db_validator_tables_validated_total",
        "Tables validated, by outcome",
        ["status"],  # passed, failed
        registry=REGISTRY
    )
except ValueError:
    VALIDATION_TABLES = REGISTRY._names_to_collectors.get("db_validator_tables_validated_total")

try:
    VALIDATION_RUN_TIME = Histogram(
        "db_validator_run_seconds",
        "Wall-clock time of one batch validation call",
        buckets=[0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300],
        registry=REGISTRY
    )
except ValueError:
    VALIDATION_RUN_TIME = REGISTRY._names_to_collectors.get("db_validator_run_seconds")

try:
    DETAIL_ACTIVE_TASKS = Gauge(
        "db_validator_detail_active_tasks",
        "Detail validation tasks currently querying the database",
        registry=REGISTRY
    )
except ValueError:
    DETAIL_ACTIVE_TASKS = REGISTRY._names_to_collectors.get("db_validator_detail_active_tasks")
