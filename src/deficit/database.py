"""Async SQLAlchemy engine and session management.

Production runs on PostgreSQL through asyncpg; local development and the test
suite use SQLite through aiosqlite. Routers own the transaction (commit),
services only flush.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:  # noqa: ANN401
    # SQLite ignores ON DELETE CASCADE unless the pragma is set per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


async def init_db(url: str, *, pool_size: int = 10, max_overflow: int = 5) -> None:
    """Create the engine and session factory for ``url``."""
    global _engine, _session_factory  # noqa: PLW0603
    if _is_sqlite(url):
        _engine = create_async_engine(url)
        event.listen(_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        # statement_cache_size=0 keeps asyncpg usable behind pgbouncer in transaction mode
        _engine = create_async_engine(
            url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            connect_args={"statement_cache_size": 0},
        )
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)


async def close_db() -> None:
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def get_engine() -> AsyncEngine:
    if _engine is None:
        msg = "Database engine is not initialised; the app lifespan has not run"
        raise RuntimeError(msg)
    return _engine


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed afterwards."""
    if _session_factory is None:
        msg = "Database engine is not initialised; the app lifespan has not run"
        raise RuntimeError(msg)
    async with _session_factory() as session:
        yield session
