from __future__ import annotations

import functools
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cartwise.core.config import get_settings

_TRUTHY = {"1", "true", "yes", "on"}

def _is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY

def _adapt_url(raw_url: str) -> tuple[URL, dict[str, Any]]:
    """
    Return (async_url, connect_args) with an async driver set.
    Handles PostgreSQL and SQLite and falls back to the given URL for others.
    """
    url = make_url(raw_url)
    backend = url.get_backend_name()

    # PostgreSQL: asyncpg
    if backend in {"postgresql", "postgres"}:
        query = dict(url.query)
        sslmode = query.get("sslmode")
        pgbouncer = query.get("pgbouncer")

        async_query = dict(query)
        async_query.pop("sslmode", None)
        async_query.pop("pgbouncer", None)

        connect_args: dict[str, Any] = {}

        if sslmode and sslmode.lower() in {"require", "verify-ca", "verify-full"}:
            connect_args["ssl"] = True

        # PgBouncer transaction pooling: disable prepared statements.
        if _is_truthy(pgbouncer):
            connect_args.setdefault("statement_cache_size", 0)

        async_url = url.set(drivername="postgresql+asyncpg", query=async_query)
        return async_url, connect_args

    # SQLite: aiosqlite
    if backend == "sqlite":
        return url.set(drivername="sqlite+aiosqlite"), {}

    return url, {}

POOL_PRE_PING = True
POOL_SIZE = 10
MAX_OVERFLOW = 10
POOL_TIMEOUT = 30
POOL_RECYCLE = 1800  # Recycle connections after 30 min


def _pool_kwargs(url: URL) -> dict[str, Any]:
    # SQLite uses its own pool classes which reject sizing arguments
    if url.get_backend_name() == "sqlite":
        return {}
    return {
        "pool_pre_ping": POOL_PRE_PING,
        "pool_size": POOL_SIZE,
        "max_overflow": MAX_OVERFLOW,
        "pool_timeout": POOL_TIMEOUT,
        "pool_recycle": POOL_RECYCLE,
    }


# Engines are built on first use so importing this module never needs a database driver
@functools.lru_cache()
def get_async_engine() -> AsyncEngine:
    async_url, connect_args = _adapt_url(get_settings().database_url)
    return create_async_engine(async_url, connect_args=connect_args, **_pool_kwargs(async_url))


@functools.lru_cache()
def _async_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=get_async_engine(), expire_on_commit=False, autoflush=False)


# --- Plain "hand-me-a-session" dependencies (caller manages commit/rollback) ---

@asynccontextmanager
async def get_async_session() -> AsyncIterator[AsyncSession]:
    async with _async_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()

# --- Transactional helpers (auto-commit / rollback) ---

@asynccontextmanager
async def async_transaction() -> AsyncIterator[AsyncSession]:
    async with _async_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

# --- FastAPI lifespan glue ---

async def dispose_engines() -> None:
    """Call on application shutdown to cleanly close pools."""
    if get_async_engine.cache_info().currsize:
        await get_async_engine().dispose()

__all__ = [
    "get_async_session",
    "async_transaction",
    "dispose_engines",
    "get_async_engine",
]
