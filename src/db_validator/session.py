"""
Database session used by the validator to issue round trips.

A session wraps either one DB-API connection or a connection pool exposing
an ``acquire()`` context manager. Detail checks run on worker threads, so a
pool (one connection per in-flight task) gives real concurrency; a single
connection is shared across threads only when its driver allows it.

A single sqlite3 connection is bound to the thread that opened it unless it
was made with ``check_same_thread=False``, which the connection does not
report, so such sessions are marked ``thread_bound`` and their detail checks
run on the calling thread.
"""

import logging
import sys
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager, nullcontext
from typing import Any

from utils.tracing import trace_database_query

from .dialects import Dialect, detect_db_type, get_dialect
from .identifiers import validate_identifier

logger = logging.getLogger(__name__)


def _driver_threadsafety(connection: Any) -> int:
    """DB-API ``threadsafety`` level of the module that created ``connection``."""
    module_name = type(connection).__module__.split(".")[0]
    module = sys.modules.get(module_name)
    return getattr(module, "threadsafety", 0)


class DatabaseSession:
    """
    Hands out cursors and executes validation queries.

    Args:
        connection: A DB-API connection (psycopg2, pyodbc, sqlite3)
        pool: A pool whose ``acquire()`` context manager yields a connection
        db_type: 'postgresql', 'sqlserver' or 'sqlite'; detected from the
            connection when omitted
        schema: Schema holding the tables under test; defaults per database
            type (public, dbo, main)
    """

    def __init__(
        self,
        connection: Any = None,
        pool: Any = None,
        db_type: str | None = None,
        schema: str | None = None,
    ):
        if (connection is None) == (pool is None):
            raise ValueError("Provide exactly one of connection or pool")

        if db_type is None:
            if connection is None:
                db_type = getattr(pool, "db_type", None)
                if db_type is None:
                    raise ValueError("db_type is required when using a pool")
            else:
                db_type = detect_db_type(connection)

        self.connection = connection
        self.pool = pool
        self.dialect: Dialect = get_dialect(db_type)
        self.schema = schema or self.dialect.default_schema
        validate_identifier(self.schema, "schema name")

        self.thread_bound = connection is not None and self.dialect.name == "sqlite"
        self._lock: threading.Lock | None = None
        if self.thread_bound:
            logger.info(
                "sqlite3 connection is bound to its creating thread; "
                "detail queries will run on the calling thread"
            )
        elif connection is not None and _driver_threadsafety(connection) < 2:
            self._lock = threading.Lock()
            logger.warning(
                f"{self.dialect.name} driver cannot share a connection across threads; "
                f"detail queries will be serialized. Pass a pool for concurrent checks."
            )

    @property
    def db_type(self) -> str:
        return self.dialect.name

    @property
    def serialized(self) -> bool:
        """Whether queries on this session run one at a time."""
        return self.thread_bound or self._lock is not None

    @contextmanager
    def cursor(self) -> Iterator[Any]:
        """Yield a cursor, closing it (and releasing any pooled connection) afterwards."""
        if self.pool is not None:
            with self.pool.acquire() as conn:
                cursor = conn.cursor()
                try:
                    yield cursor
                finally:
                    cursor.close()
        else:
            with self._lock or nullcontext():
                cursor = self.connection.cursor()
                try:
                    yield cursor
                finally:
                    cursor.close()

    def fetch_all(
        self,
        query: str,
        params: Sequence[Any] = (),
        phase: str = "query",
        table: str | None = None,
    ) -> list[tuple]:
        """
        Execute one query as a single round trip and return all rows.

        Args:
            query: SQL text using the dialect's placeholders
            params: Values bound to the placeholders
            phase: Validation phase, recorded on the trace span
            table: Table name for single-table queries

        Returns:
            Rows as tuples
        """
        with trace_database_query(phase, self.db_type, table=table):
            with self.cursor() as cursor:
                if params:
                    cursor.execute(query, list(params))
                else:
                    cursor.execute(query)
                return [tuple(row) for row in cursor.fetchall()]
