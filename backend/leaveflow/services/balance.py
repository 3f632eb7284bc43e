from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import update
from sqlmodel import col

from leaveflow.exceptions import InsufficientBalanceError, UnauthorizedError
from leaveflow.models.enums import LeaveCategory, RoleType, Transition
from leaveflow.models.user import User
from leaveflow.schemas.balance import BalanceResponse
from leaveflow.services.user import get_user_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.models.leave_type import LeaveType
    from leaveflow.schemas.auth import AuthContext

logger = logging.getLogger(__name__)

# Category -> User column holding the matching balance. OTHER has none.
_BALANCE_FIELDS: dict[LeaveCategory, str] = {
    LeaveCategory.ANNUAL: "annual_leave_balance",
    LeaveCategory.SICK: "sick_leave_balance",
}


def balance_field(category: str) -> str | None:
    """Return the User attribute a category draws on, or None if it draws on nothing."""
    return _BALANCE_FIELDS.get(LeaveCategory(category))


class BalanceLedger:
    """Guards and mutates the per-user annual and sick leave counters.

    Deductions are issued as a single ``UPDATE ... SET x = x - n`` inside the
    caller's transaction so they commit or roll back together with the status
    change they belong to.
    """

    def check_sufficient(self, user: User, leave_type: LeaveType, duration: int) -> None:
        """Raise InsufficientBalanceError if the matching balance is below ``duration``.

        Leave types that do not deduct, and the OTHER category, never block.
        """
        if not leave_type.deducts_balance:
            return
        field = balance_field(leave_type.category)
        if field is None:
            return
        available: int = getattr(user, field)
        if available < duration:
            raise InsufficientBalanceError(leave_type.category, available, duration)

    async def deduct(
        self,
        session: AsyncSession,
        user: User,
        leave_type: LeaveType,
        duration: int,
    ) -> None:
        """Decrement the matching balance by ``duration``. No-op when nothing is deducted."""
        if not leave_type.deducts_balance:
            return
        field = balance_field(leave_type.category)
        if field is None:
            return

        column = getattr(User, field)
        await session.execute(
            update(User)
            .where(col(User.id) == user.id)
            .values({field: column - duration})
            .execution_options(synchronize_session=False)
        )
        await session.refresh(user, attribute_names=[field])
        logger.info("Deducted %d day(s) from %s of user %s", duration, field, user.id)

    async def get_balances(self, session: AsyncSession, user_id: uuid.UUID) -> BalanceResponse:
        """Return the user's remaining annual and sick leave."""
        user = await get_user_or_404(session, user_id)
        return BalanceResponse(
            user_id=user.id,
            annual_leave_balance=user.annual_leave_balance,
            sick_leave_balance=user.sick_leave_balance,
        )


async def get_visible_balances(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID,
    ledger: BalanceLedger | None = None,
) -> BalanceResponse:
    """Balances of ``user_id`` as seen by ``auth``: the user, their manager, or an admin."""
    ledger = ledger or BalanceLedger()
    if auth.role != RoleType.ADMIN and auth.user_id != user_id:
        user = await get_user_or_404(session, user_id)
        if user.manager_id != auth.user_id:
            raise UnauthorizedError(Transition.VIEW, reason=f"cannot view balances of user {user_id}")
    return await ledger.get_balances(session, user_id)
