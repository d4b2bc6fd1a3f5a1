"""PostgreSQL engine and session handling for the interaction store.

The engine is built on first use, so processes running with
``STORE_BACKEND=memory`` never open a connection pool.
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from agrivoice.config.settings import settings

# Tables must be registered on Base.metadata before create_all runs
from agrivoice.models import Base  # noqa: F401
from agrivoice.models import interaction  # noqa: F401
from agrivoice.models import user_profile  # noqa: F401

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def schema_name() -> str | None:
    """Configured schema for the interaction tables, or None for the default search_path."""

    raw = (settings.database.schema_name or "").strip()
    if not raw:
        return None
    if not _IDENTIFIER.fullmatch(raw):
        logger.warning("Ignoring invalid DB_SCHEMA %r; using the default search_path.", raw)
        return None
    return raw


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    options: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
    }
    if settings.database.serverless or settings.debug:
        # Serverless Postgres pauses idle instances; pooled connections would go stale.
        options["poolclass"] = NullPool
    logger.info(
        "Creating database engine host=%s database=%s schema=%s",
        settings.database.host,
        settings.database.database,
        schema_name() or "public",
    )
    return create_async_engine(settings.database.url, **options)


@lru_cache(maxsize=1)
def _session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), expire_on_commit=False, class_=AsyncSession)


async def _use_schema(target: Any) -> None:
    schema = schema_name()
    if schema:
        await target.execute(text(f'SET search_path TO "{schema}", public'))


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Yield a session bound to the configured schema; callers commit explicitly."""

    async with _session_factory()() as session:
        await _use_schema(session)
        yield session


async def init_models() -> None:
    """Create the schema and the interaction tables when missing."""

    schema = schema_name()
    async with get_engine().begin() as conn:
        if schema:
            await conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))
        await _use_schema(conn)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Interaction tables ready in schema '%s'.", schema or "public")


async def check_connection() -> bool:
    """Run a trivial query; used by the health endpoint."""

    try:
        async with session_scope() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database health check failed: %s", exc)
        return False
    return True


async def dispose_engine() -> None:
    """Release pooled connections if the engine was ever created."""

    if get_engine.cache_info().currsize:
        await get_engine().dispose()


__all__ = ["check_connection", "dispose_engine", "get_engine", "init_models", "session_scope"]
