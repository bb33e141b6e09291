"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from neko_blog.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import neko_blog.models  # noqa: E402,F401


def connect_args_for(url: str, timeout_ms: int) -> dict[str, Any]:
    """Return driver arguments that bound every statement by ``timeout_ms``."""
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": max(timeout_ms, 0) / 1000}
    if url.startswith("postgresql"):
        return {"options": f"-c statement_timeout={max(timeout_ms, 0)}"}
    return {}


def _use_immediate_transactions(engine: Engine) -> None:
    """Make SQLite take the write lock when a transaction begins.

    Toggles read before they write; with deferred transactions two writers
    can each hold a read lock and fail with "database is locked" instead of
    waiting on the busy timeout.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str | None = None, **kwargs: Any) -> Engine:
    """Create an engine for ``url`` (defaults to the configured database)."""
    url = url or settings.effective_database_url
    kwargs.setdefault("connect_args", connect_args_for(url, settings.db_statement_timeout_ms))
    engine = create_engine(url, pool_pre_ping=True, echo=settings.sql_debug, **kwargs)
    if engine.dialect.name == "sqlite":
        _use_immediate_transactions(engine)
    return engine


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()



def create_tables(bind: Engine | None = None) -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind: Engine | None = None) -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=bind or engine)
