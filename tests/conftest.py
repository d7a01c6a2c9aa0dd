"""
Pytest configuration and fixtures for validator tests.

Provides two database doubles:
- ``fake_database``: an instrumented in-memory driver that answers the
  validator's queries, records every round trip and tracks how many
  queries are in flight at once
- ``sqlite_database``: a real SQLite file reachable through a pool or a
  single connection
"""

import re
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path

import pytest

from db_validator import DatabaseSession

UNION_BRANCH = re.compile(r"SELECT '(\w+)' AS table_name")
DETAIL_TABLE = re.compile(r'FROM "\w+"\."(\w+)"')
DETAIL_COLUMN = re.compile(r"AS (sample|column)_(\d+)")


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


class FakeDatabase:
    """
    In-memory stand-in for a PostgreSQL server.

    Args:
        tables: Existing tables and their row counts
        detail_rows: Per-table overrides of the aggregate detail row; by
            default every sample matches (1) and no column differs (0)
        detail_delay: Seconds each detail query takes
        fail_on: Query kind that raises ("existence", "batch_count", "detail")
        fail_tables: Tables whose detail query raises
    """

    def __init__(
        self,
        tables: dict[str, int],
        detail_rows: dict[str, tuple] | None = None,
        detail_delay: float = 0.0,
        fail_on: str | None = None,
        fail_tables: set[str] | None = None,
    ):
        self.tables = dict(tables)
        self.detail_rows = detail_rows or {}
        self.detail_delay = detail_delay
        self.fail_on = fail_on
        self.fail_tables = fail_tables or set()

        self.queries: list[tuple[str, str, list]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    @property
    def query_count(self) -> int:
        return len(self.queries)

    def queries_of_kind(self, kind: str) -> list[tuple[str, str, list]]:
        return [q for q in self.queries if q[0] == kind]

    def classify(self, sql: str) -> str:
        if "information_schema" in sql:
            return "existence"
        if UNION_BRANCH.search(sql):
            return "batch_count"
        return "detail"

    def execute(self, sql: str, params: list) -> list[tuple]:
        kind = self.classify(sql)
        with self._lock:
            self.queries.append((kind, sql, list(params)))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if kind == "detail" and self.detail_delay:
                time.sleep(self.detail_delay)
            if self.fail_on == kind:
                raise RuntimeError(f"simulated {kind} failure")
            return self._answer(kind, sql, params)
        finally:
            with self._lock:
                self.in_flight -= 1

    def _answer(self, kind: str, sql: str, params: list) -> list[tuple]:
        if kind == "existence":
            return [(name,) for name in params[1:] if name in self.tables]
        if kind == "batch_count":
            return [(name, self.tables[name]) for name in UNION_BRANCH.findall(sql)]

        table = DETAIL_TABLE.search(sql).group(1)
        if table in self.fail_tables:
            raise RuntimeError(f"simulated detail failure for {table}")
        if table in self.detail_rows:
            return [self.detail_rows[table]]
        return [tuple(1 if k == "sample" else 0 for k, _ in DETAIL_COLUMN.findall(sql))]

    def connection(self) -> "FakeConnection":
        return FakeConnection(self)

    def session(self, pooled: bool = True, schema: str | None = None) -> DatabaseSession:
        if pooled:
            return DatabaseSession(pool=FakePool(self), db_type="postgresql", schema=schema)
        return DatabaseSession(connection=self.connection(), db_type="postgresql", schema=schema)


class FakeCursor:
    def __init__(self, database: FakeDatabase):
        self.database = database
        self._rows: list[tuple] = []
        self.closed = False

    def execute(self, sql: str, params=None) -> None:
        self._rows = self.database.execute(sql, list(params or []))

    def fetchall(self) -> list[tuple]:
        return self._rows

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    def __init__(self, database: FakeDatabase):
        self.database = database

    def cursor(self) -> FakeCursor:
        return FakeCursor(self.database)


class FakePool:
    db_type = "postgresql"

    def __init__(self, database: FakeDatabase):
        self.database = database
        self.acquired = 0

    @contextmanager
    def acquire(self):
        self.acquired += 1
        yield FakeConnection(self.database)


@pytest.fixture
def fake_database():
    """Factory building an instrumented ``FakeDatabase``."""
    return FakeDatabase


class SqlitePool:
    """Opens one SQLite connection per acquire, like a pool handing out connections."""

    db_type = "sqlite"

    def __init__(self, path: Path):
        self.path = path

    @contextmanager
    def acquire(self):
        conn = sqlite3.connect(self.path)
        try:
            yield conn
        finally:
            conn.close()


class SqliteDatabase:
    def __init__(self, path: Path):
        self.path = path

    def create_table(self, name: str, columns: str, rows: list[tuple] = ()) -> None:
        with sqlite3.connect(self.path) as conn:
            conn.execute(f'CREATE TABLE "{name}" ({columns})')
            if rows:
                placeholders = ", ".join("?" * len(rows[0]))
                conn.executemany(f'INSERT INTO "{name}" VALUES ({placeholders})', rows)

    def pool_session(self, **kwargs) -> DatabaseSession:
        return DatabaseSession(pool=SqlitePool(self.path), **kwargs)

    def connection_session(self, **kwargs) -> DatabaseSession:
        """Session over a plain connection, usable only from the creating thread."""
        return DatabaseSession(connection=sqlite3.connect(self.path), **kwargs)


@pytest.fixture
def sqlite_database(tmp_path: Path) -> SqliteDatabase:
    """Empty SQLite database file."""
    return SqliteDatabase(tmp_path / "validator.db")


@pytest.fixture
def users_database(sqlite_database: SqliteDatabase) -> SqliteDatabase:
    """SQLite database with Users (3 rows) and Orders (2 rows)."""
    sqlite_database.create_table(
        "Users",
        "id INTEGER PRIMARY KEY, name TEXT, status TEXT, active INTEGER",
        [(1, "Alice", "active", 1), (2, "Bob", "active", 1), (3, "Carol", "active", 0)],
    )
    sqlite_database.create_table(
        "Orders",
        "id INTEGER PRIMARY KEY, user_id INTEGER, amount REAL, note TEXT",
        [(10, 1, 19.5, None), (11, 2, 5.0, None)],
    )
    return sqlite_database
