"""Async engine and session management.

The API, background publishing and the CLI all talk to the database through
one async engine. Alembic migrations use the sync driver (see ``to_sync_url``).
"""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from mwarex.config import settings
from mwarex.observability.logging import get_logger
from mwarex.storage.models import Base

logger = get_logger(__name__)

__all__ = [
    "get_async_engine",
    "get_async_session_factory",
    "init_async_db",
    "shutdown_async_db",
    "to_async_url",
    "to_sync_url",
]

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=3000",
)

_engine: AsyncEngine | None = None
_engine_url: str | None = None
# Loop the engine was created on; asyncpg/aiosqlite connections are loop-bound.
_engine_loop_id: int | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_retired: dict[int, AsyncEngine] = {}


_SYNC_DRIVERS = {
    "sqlite+aiosqlite://": "sqlite://",
    "postgresql+asyncpg://": "postgresql+psycopg2://",
}
_ASYNC_DRIVERS = {
    "postgresql+psycopg2://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def to_sync_url(url: str) -> str:
    """Map an async driver URL onto its sync counterpart (for Alembic)."""
    for prefix, replacement in _SYNC_DRIVERS.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


def to_async_url(url: str) -> str:
    """Map a sync or bare URL onto the async driver the app runs on."""
    if url.startswith(("sqlite+aiosqlite://", "postgresql+asyncpg://")):
        return url
    for prefix, replacement in _ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


def _running_loop_id() -> int | None:
    try:
        return id(asyncio.get_running_loop())
    except RuntimeError:
        return None


def _apply_sqlite_pragmas(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        for pragma in _SQLITE_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            options["poolclass"] = StaticPool
        elif settings.environment == "test":
            # Each test runs its own event loop; pooled connections would outlive it.
            options["poolclass"] = NullPool
        return options
    if not settings.async_use_pool:
        return {"poolclass": NullPool, "pool_pre_ping": True}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }


def get_async_engine() -> AsyncEngine:
    """Return the engine for the current URL and event loop, creating it if needed."""
    global _engine, _engine_url, _engine_loop_id, _session_factory

    url = to_async_url(settings.database_url)
    loop_id = _running_loop_id()
    stale = _engine is not None and (
        _engine_url != url
        or (_engine_loop_id is not None and loop_id is not None and loop_id != _engine_loop_id)
    )
    if stale:
        _retired[id(_engine)] = _engine
        _engine = None
        _session_factory = None

    if _engine is None:
        logger.info("Creating async database engine", driver=url.split("://", 1)[0])
        _engine = create_async_engine(url, **_engine_options(url))
        if url.startswith("sqlite") and ":memory:" not in url:
            event.listen(_engine.sync_engine, "connect", _apply_sqlite_pragmas)
        _engine_url = url
        _engine_loop_id = loop_id
    return _engine


def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_async_engine(),
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory


async def init_async_db() -> None:
    """Create missing tables. Migrations remain the source of truth in production."""
    await shutdown_async_db()
    async with get_async_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Async database tables created")


async def shutdown_async_db() -> None:
    """Dispose current and retired engines.

    Leaked aiosqlite connections raise unraisable exceptions once their event
    loop is closed, so tests call this on teardown.
    """
    global _engine, _engine_url, _engine_loop_id, _session_factory, _retired

    if _engine is not None:
        _retired[id(_engine)] = _engine
    engines, _retired = list(_retired.values()), {}
    _engine = None
    _engine_url = None
    _engine_loop_id = None
    _session_factory = None

    for engine in engines:
        try:
            await engine.dispose()
        except Exception:  # pragma: no cover - best-effort cleanup
            logger.debug("Failed to dispose async engine", exc_info=True)
