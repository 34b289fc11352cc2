# ---------------------------------------------------------------------------
# db.py
#
# SQLAlchemy database setup.
#
# This module defines:
# - `engine`: the process-wide SQLAlchemy Engine (bounded connection pool)
# - `Base`: the declarative base class for ORM models
# - session configuration applied to every connection lent to a request
# - `init_db()` / `dispose_engine()` for the application lifespan
#
# The engine runs in AUTOCOMMIT mode: handlers issue single statements and
# each one commits on its own.
# ---------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.orm import DeclarativeBase

from .config import (
    DATABASE_URL,
    DB_MAX_OVERFLOW,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_SQL_MODE,
    DB_TIME_ZONE,
)

logger = logging.getLogger(__name__)

SessionStatement = Tuple[str, Dict[str, Any]]


def build_engine(url: str) -> Engine:
    """Create an engine with a bounded QueuePool for the given URL."""
    kwargs: Dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT,
        "isolation_level": "AUTOCOMMIT",
    }
    if make_url(url).get_backend_name() == "sqlite":
        # Connections are checked out and used from threadpool workers.
        kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **kwargs)


engine = build_engine(DATABASE_URL)


class Base(DeclarativeBase):
    """Declarative base class for all ORM models."""

    pass


def session_statements(dialect_name: str) -> Tuple[SessionStatement, ...]:
    """Statements that put a freshly checked-out connection into a known state."""
    if dialect_name == "mysql":
        return (
            ("SET SESSION sql_mode = :sql_mode", {"sql_mode": DB_SQL_MODE}),
            ("SET time_zone = :time_zone", {"time_zone": DB_TIME_ZONE}),
        )
    if dialect_name == "sqlite":
        # SQLite has no session timezone; foreign keys are its integrity switch.
        return (("PRAGMA foreign_keys = ON", {}),)
    return ()


def configure_session(conn: Connection) -> None:
    """Apply the dialect's session settings to `conn`."""
    for sql, params in session_statements(conn.dialect.name):
        conn.execute(text(sql), params)


def acquire_connection(bind: Engine | None = None) -> Connection:
    """Check a connection out of the pool and configure it.

    Blocks until the pool lends a connection or DB_POOL_TIMEOUT elapses. If the
    session statements fail the connection goes straight back to the pool.
    """
    conn = (bind or engine).connect()
    try:
        configure_session(conn)
    except Exception:
        conn.close()
        raise
    return conn


def release_connection(conn: Connection) -> None:
    """Return a connection to the pool."""
    conn.close()


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables."""
    from . import models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=bind or engine)


def dispose_engine(bind: Engine | None = None) -> None:
    """Close every pooled connection."""
    (bind or engine).dispose()
    logger.info("Database pool disposed")
