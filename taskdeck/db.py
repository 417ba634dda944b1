"""Database engine and session management."""

from __future__ import annotations

from typing import Dict, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_config
from .models import Base


# Module-level caches, keyed by database URL
_ENGINES: Dict[str, Engine] = {}
_SESSIONMAKERS: Dict[str, sessionmaker] = {}


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Get or create the SQLAlchemy engine for ``database_url``.

    Args:
        database_url: Optional override for the database URL.
                     If not provided, uses config.
    """
    if database_url is None:
        database_url = get_config().database_url

    engine = _ENGINES.get(database_url)
    if engine is not None:
        return engine

    kwargs = {}
    if database_url.startswith("sqlite:"):
        # API requests may be served from a thread pool.
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection, otherwise each session sees an empty DB.
            kwargs["poolclass"] = StaticPool

    engine = create_engine(
        database_url,
        future=True,
        echo=False,
        pool_pre_ping=True,
        **kwargs,
    )
    if engine.url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    _ENGINES[database_url] = engine
    _SESSIONMAKERS[database_url] = sessionmaker(
        bind=engine, autoflush=False, expire_on_commit=False, future=True
    )
    return engine


def get_session(database_url: Optional[str] = None) -> Session:
    """Create a new database session; use it as a context manager."""
    if database_url is None:
        database_url = get_config().database_url
    if database_url not in _SESSIONMAKERS:
        get_engine(database_url)
    return _SESSIONMAKERS[database_url]()


def init_db(database_url: Optional[str] = None) -> None:
    """Create all tables if they don't exist. Safe to call multiple times."""
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)


def dispose_engines() -> None:
    for engine in _ENGINES.values():
        engine.dispose()
    _ENGINES.clear()
    _SESSIONMAKERS.clear()
