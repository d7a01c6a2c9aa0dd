"""
Database connections built from environment configuration.

Drivers are imported lazily so only the one in use has to be installed:
psycopg2 for PostgreSQL, pyodbc for SQL Server, sqlite3 for SQLite.
"""

import logging
import os
import sqlite3
from typing import Any

from .config import ValidatorSettings
from .dialects import get_dialect
from .session import DatabaseSession

logger = logging.getLogger(__name__)


def connection_config_from_env(db_type: str) -> dict[str, Any]:
    """
    Read connection parameters for ``db_type`` from environment variables

    Environment variables:
        PostgreSQL: POSTGRES_HOST, POSTGRES_PORT, POSTGRES_DB, POSTGRES_USER, POSTGRES_PASSWORD
        SQL Server: SQLSERVER_HOST, SQLSERVER_DATABASE, SQLSERVER_USER, SQLSERVER_PASSWORD,
                    SQLSERVER_DRIVER
        SQLite:     SQLITE_PATH

    Raises:
        ValueError: If the database type is unsupported or a password is missing
    """
    dialect = get_dialect(db_type)

    if dialect.name == "postgresql":
        config = {
            "host": os.getenv("POSTGRES_HOST", "localhost"),
            "port": int(os.getenv("POSTGRES_PORT", "5432")),
            "database": os.getenv("POSTGRES_DB", "postgres"),
            "user": os.getenv("POSTGRES_USER", "postgres"),
            "password": os.getenv("POSTGRES_PASSWORD"),
        }
    elif dialect.name == "sqlserver":
        config = {
            "server": os.getenv("SQLSERVER_HOST", "localhost"),
            "database": os.getenv("SQLSERVER_DATABASE", "master"),
            "user": os.getenv("SQLSERVER_USER", "sa"),
            "password": os.getenv("SQLSERVER_PASSWORD"),
            "driver": os.getenv("SQLSERVER_DRIVER", "ODBC Driver 18 for SQL Server"),
        }
    else:
        return {"path": os.getenv("SQLITE_PATH", ":memory:")}

    if not config["password"]:
        raise ValueError(f"{dialect.name} database password not provided")
    return config


def connect(db_type: str, config: dict[str, Any]) -> Any:
    """
    Open a DB-API connection.

    Args:
        db_type: postgresql, sqlserver or sqlite
        config: Parameters as returned by ``connection_config_from_env``

    Returns:
        An open connection
    """
    dialect = get_dialect(db_type)

    if dialect.name == "postgresql":
        import psycopg2

        conn = psycopg2.connect(
            host=config["host"],
            port=config["port"],
            database=config["database"],
            user=config["user"],
            password=config["password"],
            connect_timeout=10,
        )
        # Read-only validation queries; avoid idle-in-transaction sessions
        conn.set_session(autocommit=True)
        logger.info(f"Connected to PostgreSQL {config['host']}:{config['port']}/{config['database']}")
        return conn

    if dialect.name == "sqlserver":
        import pyodbc

        conn = pyodbc.connect(
            f"DRIVER={{{config['driver']}}};"
            f"SERVER={config['server']};"
            f"DATABASE={config['database']};"
            f"UID={config['user']};"
            f"PWD={config['password']};"
            f"TrustServerCertificate=yes;",
            autocommit=True,
        )
        logger.info(f"Connected to SQL Server {config['server']}/{config['database']}")
        return conn

    conn = sqlite3.connect(config["path"], check_same_thread=False)
    logger.info(f"Opened SQLite database {config['path']}")
    return conn


def open_session(settings: ValidatorSettings | None = None) -> DatabaseSession:
    """
    Connect using environment configuration and wrap the connection in a session.

    Example:
        >>> session = open_session()  # DB_TYPE, POSTGRES_* from environment
        >>> result = validate_database(session, load_expected_config("expected.yaml"))
    """
    settings = settings or ValidatorSettings.from_env()
    connection = connect(settings.db_type, connection_config_from_env(settings.db_type))
    return DatabaseSession(connection=connection, db_type=settings.db_type, schema=settings.schema)
