"""Tests for the balance ledger: sufficiency checks, deductions and the balance read endpoint."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest

from leaveflow.exceptions import InsufficientBalanceError
from leaveflow.models import LeaveCategory, LeaveType, RoleType, User
from leaveflow.services.balance import BalanceLedger, balance_field

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def _user(annual: int = 20, sick: int = 10) -> User:
    return User(
        first_name="Test",
        last_name="User",
        email="test@example.com",
        annual_leave_balance=annual,
        sick_leave_balance=sick,
    )


def _leave_type(category: LeaveCategory, deducts_balance: bool = True) -> LeaveType:
    return LeaveType(name=category.title(), category=category.value, deducts_balance=deducts_balance)


def _headers(user_id: uuid.UUID, role: RoleType = RoleType.EMPLOYEE) -> dict[str, str]:
    return {"X-User-Id": str(user_id), "X-Role": role.value}


# ---------------------------------------------------------------------------
# balance_field
# ---------------------------------------------------------------------------


def test_balance_field_mapping() -> None:
    assert balance_field(LeaveCategory.ANNUAL) == "annual_leave_balance"
    assert balance_field(LeaveCategory.SICK) == "sick_leave_balance"
    assert balance_field(LeaveCategory.OTHER) is None


# ---------------------------------------------------------------------------
# check_sufficient
# ---------------------------------------------------------------------------


def test_check_sufficient_annual_ok() -> None:
    BalanceLedger().check_sufficient(_user(annual=3), _leave_type(LeaveCategory.ANNUAL), 3)


def test_check_sufficient_annual_short() -> None:
    with pytest.raises(InsufficientBalanceError) as exc_info:
        BalanceLedger().check_sufficient(_user(annual=2), _leave_type(LeaveCategory.ANNUAL), 3)
    assert exc_info.value.status_code == 400
    assert exc_info.value.available == 2
    assert exc_info.value.requested == 3
    assert "annual" in exc_info.value.message


def test_check_sufficient_sick_short() -> None:
    with pytest.raises(InsufficientBalanceError, match="sick"):
        BalanceLedger().check_sufficient(_user(sick=1), _leave_type(LeaveCategory.SICK), 2)


def test_check_sufficient_sick_uses_sick_balance_only() -> None:
    BalanceLedger().check_sufficient(_user(annual=0, sick=5), _leave_type(LeaveCategory.SICK), 5)


def test_check_sufficient_other_never_blocks() -> None:
    BalanceLedger().check_sufficient(_user(annual=0, sick=0), _leave_type(LeaveCategory.OTHER), 100)


def test_check_sufficient_non_deducting_never_blocks() -> None:
    ledger = BalanceLedger()
    ledger.check_sufficient(_user(annual=0), _leave_type(LeaveCategory.ANNUAL, deducts_balance=False), 30)


# ---------------------------------------------------------------------------
# deduct
# ---------------------------------------------------------------------------


async def test_deduct_annual(
    session_factory: async_sessionmaker[AsyncSession],
    create_user: Callable[..., Awaitable[User]],
    reload_user: Callable[[uuid.UUID], Awaitable[User]],
) -> None:
    user = await create_user(annual_leave_balance=20, sick_leave_balance=10)

    async with session_factory() as session, session.begin():
        owner = await session.get(User, user.id)
        assert owner is not None
        await BalanceLedger().deduct(session, owner, _leave_type(LeaveCategory.ANNUAL), 4)
        assert owner.annual_leave_balance == 16

    stored = await reload_user(user.id)
    assert stored.annual_leave_balance == 16
    assert stored.sick_leave_balance == 10


async def test_deduct_sick(
    session_factory: async_sessionmaker[AsyncSession],
    create_user: Callable[..., Awaitable[User]],
    reload_user: Callable[[uuid.UUID], Awaitable[User]],
) -> None:
    user = await create_user(annual_leave_balance=20, sick_leave_balance=10)

    async with session_factory() as session, session.begin():
        owner = await session.get(User, user.id)
        assert owner is not None
        await BalanceLedger().deduct(session, owner, _leave_type(LeaveCategory.SICK), 3)

    stored = await reload_user(user.id)
    assert stored.annual_leave_balance == 20
    assert stored.sick_leave_balance == 7


async def test_deduct_can_go_negative(
    session_factory: async_sessionmaker[AsyncSession],
    create_user: Callable[..., Awaitable[User]],
    reload_user: Callable[[uuid.UUID], Awaitable[User]],
) -> None:
    """Deduction itself is unconditional; guarding happens before it is called."""
    user = await create_user(annual_leave_balance=1)

    async with session_factory() as session, session.begin():
        owner = await session.get(User, user.id)
        assert owner is not None
        await BalanceLedger().deduct(session, owner, _leave_type(LeaveCategory.ANNUAL), 3)

    assert (await reload_user(user.id)).annual_leave_balance == -2


@pytest.mark.parametrize(
    ("category", "deducts_balance"),
    [(LeaveCategory.OTHER, True), (LeaveCategory.ANNUAL, False), (LeaveCategory.SICK, False)],
)
async def test_deduct_noop(
    category: LeaveCategory,
    deducts_balance: bool,
    session_factory: async_sessionmaker[AsyncSession],
    create_user: Callable[..., Awaitable[User]],
    reload_user: Callable[[uuid.UUID], Awaitable[User]],
) -> None:
    user = await create_user(annual_leave_balance=20, sick_leave_balance=10)

    async with session_factory() as session, session.begin():
        owner = await session.get(User, user.id)
        assert owner is not None
        await BalanceLedger().deduct(session, owner, _leave_type(category, deducts_balance), 5)

    stored = await reload_user(user.id)
    assert (stored.annual_leave_balance, stored.sick_leave_balance) == (20, 10)


async def test_deduct_rolls_back_with_transaction(
    session_factory: async_sessionmaker[AsyncSession],
    create_user: Callable[..., Awaitable[User]],
    reload_user: Callable[[uuid.UUID], Awaitable[User]],
) -> None:
    user = await create_user(annual_leave_balance=20)

    with pytest.raises(RuntimeError):
        async with session_factory() as session, session.begin():
            owner = await session.get(User, user.id)
            assert owner is not None
            await BalanceLedger().deduct(session, owner, _leave_type(LeaveCategory.ANNUAL), 5)
            raise RuntimeError("abort")

    assert (await reload_user(user.id)).annual_leave_balance == 20


# ---------------------------------------------------------------------------
# GET /users/{user_id}/balances
# ---------------------------------------------------------------------------


async def test_get_own_balances(async_client: AsyncClient, create_user: Callable[..., Awaitable[User]]) -> None:
    user = await create_user(annual_leave_balance=12, sick_leave_balance=4)

    resp = await async_client.get(f"/users/{user.id}/balances", headers=_headers(user.id))

    assert resp.status_code == 200
    assert resp.json() == {"user_id": str(user.id), "annual_leave_balance": 12, "sick_leave_balance": 4}


async def test_manager_sees_report_balances(
    async_client: AsyncClient, create_user: Callable[..., Awaitable[User]]
) -> None:
    manager = await create_user(role=RoleType.MANAGER.value)
    report = await create_user(manager_id=manager.id)

    resp = await async_client.get(f"/users/{report.id}/balances", headers=_headers(manager.id, RoleType.MANAGER))
    assert resp.status_code == 200


async def test_admin_sees_any_balances(async_client: AsyncClient, create_user: Callable[..., Awaitable[User]]) -> None:
    user = await create_user()
    resp = await async_client.get(f"/users/{user.id}/balances", headers=_headers(uuid.uuid4(), RoleType.ADMIN))
    assert resp.status_code == 200


async def test_colleague_cannot_see_balances(
    async_client: AsyncClient, create_user: Callable[..., Awaitable[User]]
) -> None:
    user = await create_user()
    colleague = await create_user()

    resp = await async_client.get(f"/users/{user.id}/balances", headers=_headers(colleague.id))

    assert resp.status_code == 403
    assert resp.json()["error"] == "UnauthorizedError"


async def test_balances_unknown_user(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"/users/{uuid.uuid4()}/balances", headers=_headers(uuid.uuid4(), RoleType.ADMIN))
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"
