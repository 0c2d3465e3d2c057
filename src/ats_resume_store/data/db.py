"""Database configuration and session management for the local backend.

This module provides SQLAlchemy 2.x ORM infrastructure including:
- Engine creation (SQLite by default, any SQLAlchemy URL via DB_URL)
- Foreign key enforcement on SQLite so child rows cascade with their resume
- Table creation
- Context manager for safe session usage

Engines are created explicitly and handed to the SQL backend handles;
nothing here is cached at module level.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url`` and make sure all tables exist."""
    kwargs: dict = {"echo": False, "future": True}
    if database_url.startswith("sqlite"):
        # Handles run their queries in worker threads.
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every thread sees an empty database.
            kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    init_db(engine)
    return engine


def init_db(engine: Engine) -> None:
    """Create all tables defined on the Base metadata."""
    # Import ORM models so their metadata is registered on Base before create_all.
    from ats_resume_store.data.models import resume  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
