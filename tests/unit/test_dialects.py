"""
Unit tests for SQL dialect lookup and driver detection.
"""

import sqlite3
from unittest.mock import Mock

import pytest

from db_validator.dialects import POSTGRESQL, SQLITE, SQLSERVER, detect_db_type, get_dialect


class TestGetDialect:
    """Test dialect lookup by database type"""

    @pytest.mark.parametrize(
        "db_type, dialect",
        [
            ("postgresql", POSTGRESQL),
            ("sqlserver", SQLSERVER),
            ("sqlite", SQLITE),
            ("PostgreSQL", POSTGRESQL),
        ],
    )
    def test_known_types(self, db_type, dialect):
        assert get_dialect(db_type) is dialect

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unsupported database type: 'mysql'"):
            get_dialect("mysql")

    def test_non_string_type_raises(self):
        with pytest.raises(ValueError, match="Unsupported database type"):
            get_dialect(None)

    def test_placeholders(self):
        """Test placeholder lists follow the driver paramstyle"""
        assert POSTGRESQL.placeholders(3) == "%s, %s, %s"
        assert SQLSERVER.placeholders(2) == "?, ?"
        assert SQLITE.placeholders(1) == "?"

    def test_default_schemas(self):
        assert POSTGRESQL.default_schema == "public"
        assert SQLSERVER.default_schema == "dbo"
        assert SQLITE.default_schema == "main"

    def test_catalog_case_sensitivity(self):
        assert POSTGRESQL.case_sensitive_catalog is True
        assert SQLSERVER.case_sensitive_catalog is False
        assert SQLITE.case_sensitive_catalog is False


class TestDetectDbType:
    """Test database type detection from driver objects"""

    def test_detect_postgresql(self):
        conn = Mock()
        type(conn).__module__ = "psycopg2.extensions"

        assert detect_db_type(conn) == "postgresql"

    def test_detect_sqlserver(self):
        conn = Mock()
        type(conn).__module__ = "pyodbc"

        assert detect_db_type(conn) == "sqlserver"

    def test_detect_sqlite(self):
        conn = sqlite3.connect(":memory:")
        try:
            assert detect_db_type(conn) == "sqlite"
        finally:
            conn.close()

    def test_unknown_driver_raises(self):
        class OtherConnection:
            pass

        with pytest.raises(ValueError, match="Cannot detect database type"):
            detect_db_type(OtherConnection())
