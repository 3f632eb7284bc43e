from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any

from fastapi import Depends
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from leaveflow.config import get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from leaveflow.config import Settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def engine_options(settings: Settings) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` derived from settings.

    On PostgreSQL a row lock wait is capped by ``lock_timeout`` so a stuck
    ``SELECT ... FOR UPDATE`` fails with SQLSTATE 55P03 and is retried by the
    request service instead of holding a pool connection indefinitely.
    """
    options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    url = make_url(settings.database_url)
    if url.get_backend_name() == "postgresql":
        options["pool_size"] = settings.db_pool_size
        if url.get_driver_name() == "asyncpg":
            options["connect_args"] = {"server_settings": {"lock_timeout": str(settings.db_lock_timeout_ms)}}
    return options


def get_engine() -> AsyncEngine:
    """Return the singleton async engine, creating it on first call."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(settings.database_url, **engine_options(settings))
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the singleton session factory shared by the API and the request service."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async database session for read endpoints."""
    async with get_session_factory()() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def dispose_engine() -> None:
    """Dispose the engine and reset singletons. Call on app shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
