from __future__ import annotations

import itertools
import uuid
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, pool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from leaveflow.db import get_session
from leaveflow.main import app
from leaveflow.models import LeaveCategory, LeaveType, RoleType, SQLModel, User
from leaveflow.services.request import LeaveRequestService, set_leave_service

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine

_email_counter = itertools.count()


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """File-backed SQLite engine whose transactions take the write lock up front.

    BEGIN IMMEDIATE makes concurrent writers queue on the database lock the way
    SELECT ... FOR UPDATE makes them queue on a row in PostgreSQL.
    """
    _engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'leaveflow.db'}",
        poolclass=pool.NullPool,
        connect_args={"timeout": 30},
    )

    @event.listens_for(_engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(_engine.sync_engine, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def leave_service(session_factory: async_sessionmaker[AsyncSession]) -> Iterator[LeaveRequestService]:
    """Lifecycle service bound to the test database and installed for the API."""
    service = LeaveRequestService(session_factory)
    set_leave_service(service)
    yield service
    set_leave_service(None)


@pytest.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    leave_service: LeaveRequestService,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Data factories
# ---------------------------------------------------------------------------


@pytest.fixture
def create_user(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[User]]:
    """Factory that commits a user. Keyword arguments override the defaults."""

    async def _create(**overrides: Any) -> User:
        n = next(_email_counter)
        fields: dict[str, Any] = {
            "first_name": "Test",
            "last_name": f"User{n}",
            "email": f"user{n}@example.com",
            "role": RoleType.EMPLOYEE.value,
            "annual_leave_balance": 20,
            "sick_leave_balance": 10,
        }
        fields.update(overrides)
        user = User(**fields)
        async with session_factory() as session, session.begin():
            session.add(user)
        return user

    return _create


@pytest.fixture
def create_leave_type(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[LeaveType]]:
    """Factory that commits a leave type. Defaults to an approval-required annual type."""

    async def _create(**overrides: Any) -> LeaveType:
        fields: dict[str, Any] = {
            "name": "Annual Leave",
            "category": LeaveCategory.ANNUAL.value,
            "requires_approval": True,
            "deducts_balance": True,
        }
        fields.update(overrides)
        leave_type = LeaveType(**fields)
        async with session_factory() as session, session.begin():
            session.add(leave_type)
        return leave_type

    return _create


@pytest.fixture
def reload_user(session_factory: async_sessionmaker[AsyncSession]) -> Callable[[uuid.UUID], Awaitable[User]]:
    """Read a user's current row in a fresh session."""

    async def _reload(user_id: uuid.UUID) -> User:
        async with session_factory() as session:
            user = await session.get(User, user_id)
        assert user is not None
        return user

    return _reload
