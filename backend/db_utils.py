"""Engine construction for the insights database.

SQLite is the default backend for local runs. Since the scheduler and the API
may share the same file, SQLite connections get WAL mode and a busy timeout so
a writer waits for a lock instead of failing immediately.
"""
from __future__ import annotations

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Default busy timeout in seconds (how long to wait for a lock before raising)
DEFAULT_BUSY_TIMEOUT_SECONDS = 30


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _is_sqlite_memory(database_url: str) -> bool:
    return database_url in {"sqlite://", "sqlite:///:memory:"}


def create_sqlite_engine(
    database_url: str,
    *,
    busy_timeout_seconds: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
    check_same_thread: bool = False,
) -> Engine:
    """Create a SQLite engine configured for concurrent access.

    - Enables WAL (Write-Ahead Logging) for better read concurrency
    - Sets busy_timeout so connections wait for locks instead of failing immediately
    - In-memory databases share one connection so every session sees the same data
    """
    connect_args = {
        "check_same_thread": check_same_thread,
        "timeout": int(busy_timeout_seconds),
    }
    if _is_sqlite_memory(database_url):
        engine = create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
    else:
        engine = create_engine(
            database_url,
            connect_args=connect_args,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=%d" % (int(busy_timeout_seconds * 1000),))
            cursor.execute("PRAGMA synchronous=NORMAL")
        finally:
            cursor.close()

    return engine


def create_database_engine(database_url: str, **kwargs) -> Engine:
    """Return an engine for ``database_url``; SQLite gets the concurrency pragmas."""
    if _is_sqlite(database_url):
        return create_sqlite_engine(database_url, **kwargs)
    logger.info("Using non-SQLite database backend: %s", database_url.split("://", 1)[0])
    return create_engine(database_url, pool_pre_ping=True)
