"""Database engine and session management for the journal store."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from journal_core.db.base import Base

_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def _ensure_psycopg_driver(url: str) -> str:
    """Rewrite postgresql:// to postgresql+psycopg:// for psycopg v3."""
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    return url


def _engine_options(url: str, overrides: dict[str, Any]) -> dict[str, Any]:
    """SQLite sessions are used from API worker threads; an in-memory
    database must also share a single connection to stay visible."""
    options: dict[str, Any] = {}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
    options.update(overrides)
    return options


def init_engine(url: str, create_tables: bool = True, **kwargs) -> Engine:
    """Create the global engine and session factory.

    The journal store is one key-value table, created here unless
    *create_tables* is False.
    """
    global _engine, _SessionLocal
    url = _ensure_psycopg_driver(url)
    _engine = create_engine(url, **_engine_options(url, kwargs))
    _SessionLocal = sessionmaker(bind=_engine)
    if create_tables:
        import journal_core.db.tables  # noqa: F401  register tables on Base.metadata

        Base.metadata.create_all(_engine)
    return _engine


def get_engine() -> Engine:
    """Return the global engine (must call init_engine first)."""
    if _engine is None:
        raise RuntimeError("Journal database not initialised; call init_engine() first")
    return _engine


def get_session() -> Generator[Session, None, None]:
    """Yield a session, closing it when done."""
    if _SessionLocal is None:
        raise RuntimeError("Journal database not initialised; call init_engine() first")
    session = _SessionLocal()
    try:
        yield session
    finally:
        session.close()
