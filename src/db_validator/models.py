"""
Data model for batch table validation.

Expectations (``ExpectedConfig``, ``TableExpected``) describe what a database
should contain; results (``TableValidationResult``, ``BatchValidationResult``,
``PerformanceMetrics``) describe what a single validation call found. All of
them are created fresh per call and carry no cross-call state.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .errors import ExpectationConfigError


@dataclass
class TableExpected:
    """Expected state of one table."""

    count: int
    sample: list[dict[str, Any]] = field(default_factory=list)
    columns: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.count, int) or isinstance(self.count, bool):
            raise ExpectationConfigError(
                f"Invalid count: {self.count!r}. Must be an integer."
            )
        if self.count < 0:
            raise ExpectationConfigError(f"Invalid count: {self.count}. Must be >= 0.")

        if self.sample is None:
            self.sample = []
        elif isinstance(self.sample, Mapping):
            # Older documents declare a single sample row as a mapping
            self.sample = [dict(self.sample)]
        else:
            rows = list(self.sample)
            for index, row in enumerate(rows, start=1):
                if not isinstance(row, Mapping):
                    raise ExpectationConfigError(
                        f"Sample row {index} must be a mapping, got {type(row).__name__}"
                    )
            self.sample = [dict(row) for row in rows]

        if self.columns is None:
            self.columns = {}
        elif not isinstance(self.columns, Mapping):
            raise ExpectationConfigError(
                f"columns must be a mapping, got {type(self.columns).__name__}"
            )
        else:
            self.columns = dict(self.columns)

    @property
    def needs_detail(self) -> bool:
        """Whether sample rows or column values have to be checked."""
        return bool(self.sample) or bool(self.columns)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TableExpected":
        if not isinstance(data, Mapping):
            raise ExpectationConfigError(
                f"Table expectation must be a mapping, got {type(data).__name__}"
            )
        if "count" not in data:
            raise ExpectationConfigError("Table expectation is missing 'count'")
        return cls(
            count=data["count"],
            sample=data.get("sample"),
            columns=data.get("columns"),
        )


@dataclass
class ExpectedConfig:
    """Expectations for every table under test, keyed by table name."""

    tables: dict[str, TableExpected] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.tables)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExpectedConfig":
        """
        Build expectations from a parsed document.

        Accepts either ``{"tables": {...}}`` or a bare mapping of table name to
        expectation. Values may already be ``TableExpected`` instances.
        """
        if not isinstance(data, Mapping):
            raise ExpectationConfigError(
                f"Expectation document must be a mapping, got {type(data).__name__}"
            )
        tables = data
        wrapped = data.get("tables") if "tables" in data else False
        # A table definition always holds a scalar count, so a mapping of
        # mappings is the wrapper and anything else is a table called "tables"
        if wrapped is None or (
            isinstance(wrapped, Mapping)
            and all(isinstance(v, (Mapping, TableExpected)) for v in wrapped.values())
        ):
            tables = wrapped or {}

        parsed = {}
        for name, expected in tables.items():
            if isinstance(expected, TableExpected):
                parsed[name] = expected
                continue
            try:
                parsed[name] = TableExpected.from_dict(expected)
            except ExpectationConfigError as e:
                raise ExpectationConfigError(f"Table {name}: {e}") from e
        return cls(tables=parsed)


@dataclass
class TableValidationResult:
    """Outcome of validating one table."""

    table_name: str
    row_count: int = 0
    messages: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "table_name": self.table_name,
            "success": self.success,
            "row_count": self.row_count,
            "messages": list(self.messages),
            "errors": list(self.errors),
        }


@dataclass
class PerformanceMetrics:
    """Round trips and timing of one validation call."""

    query_count: int
    table_count: int
    batched: bool
    elapsed_seconds: float
    started_at: datetime
    finished_at: datetime

    @property
    def queries_per_table(self) -> float:
        if self.table_count == 0:
            return 0.0
        return self.query_count / self.table_count

    @property
    def tables_per_second(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.table_count / self.elapsed_seconds

    def format_metrics(self) -> str:
        """One-line human readable summary."""
        mode = "Batch Optimized" if self.batched else "Sequential"
        return (
            f"Performance: {self.table_count} tables in {self.elapsed_seconds * 1000:.0f}ms | "
            f"{self.query_count} queries ({self.queries_per_table:.1f} per table) | "
            f"Mode: {mode}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "query_count": self.query_count,
            "table_count": self.table_count,
            "batched": self.batched,
            "elapsed_seconds": self.elapsed_seconds,
            "queries_per_table": self.queries_per_table,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
        }


@dataclass
class BatchValidationResult:
    """Report for one validation call across all expected tables."""

    database_id: str
    results: dict[str, TableValidationResult]
    performance: PerformanceMetrics
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        if self.errors:
            return False
        return all(result.success for result in self.results.values())

    @property
    def failed_tables(self) -> list[str]:
        return sorted(name for name, result in self.results.items() if not result.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "database_id": self.database_id,
            "success": self.success,
            "results": {name: r.to_dict() for name, r in sorted(self.results.items())},
            "errors": list(self.errors),
            "performance": self.performance.to_dict(),
        }
