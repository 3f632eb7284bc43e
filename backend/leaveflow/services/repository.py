"""Storage access for leave requests.

All writes are status-guarded: an update or delete only touches the row if it
is still PENDING, and a zero row count is reported as InvalidStateError. Callers
supply the session and therefore the transaction boundary.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, select, update
from sqlmodel import col

from leaveflow.exceptions import InvalidStateError, NotFoundError
from leaveflow.models.base import now_utc
from leaveflow.models.enums import LeaveRequestStatus
from leaveflow.models.request import LeaveRequest
from leaveflow.models.user import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.models.enums import Transition


class LeaveRequestRepository:
    """Queries and guarded writes against the ``leave_request`` table."""

    async def get_by_id(
        self,
        session: AsyncSession,
        request_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> LeaveRequest:
        """Fetch a request by ID, optionally with a row lock. Raises 404 if not found."""
        query = select(LeaveRequest).where(col(LeaveRequest.id) == request_id)
        if for_update:
            query = query.with_for_update()
        result = await session.execute(query)
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFoundError("Leave request", request_id)
        return request

    async def get_by_user(self, session: AsyncSession, user_id: uuid.UUID) -> list[LeaveRequest]:
        """All requests owned by a user, newest first."""
        result = await session.execute(
            select(LeaveRequest)
            .where(col(LeaveRequest.user_id) == user_id)
            .order_by(col(LeaveRequest.created_at).desc())
        )
        return list(result.scalars().all())

    async def get_pending_for_manager(self, session: AsyncSession, manager_id: uuid.UUID) -> list[LeaveRequest]:
        """Pending requests of the manager's direct reports, oldest first."""
        result = await session.execute(
            select(LeaveRequest)
            .join(User, col(User.id) == col(LeaveRequest.user_id))
            .where(
                col(User.manager_id) == manager_id,
                col(LeaveRequest.status) == LeaveRequestStatus.PENDING.value,
            )
            .order_by(col(LeaveRequest.created_at).asc())
        )
        return list(result.scalars().all())

    async def list_all(self, session: AsyncSession) -> list[LeaveRequest]:
        """Every request in the system, newest first."""
        result = await session.execute(select(LeaveRequest).order_by(col(LeaveRequest.created_at).desc()))
        return list(result.scalars().all())

    async def add(self, session: AsyncSession, request: LeaveRequest) -> LeaveRequest:
        """Insert a new request within the caller's transaction."""
        session.add(request)
        await session.flush()
        return request

    async def update_if_pending(
        self,
        session: AsyncSession,
        request: LeaveRequest,
        values: dict[str, Any],
        transition: Transition,
    ) -> LeaveRequest:
        """Apply ``values`` only if the stored row is still PENDING, then reload it."""
        result = await session.execute(
            update(LeaveRequest)
            .where(
                col(LeaveRequest.id) == request.id,
                col(LeaveRequest.status) == LeaveRequestStatus.PENDING.value,
            )
            .values({**values, "updated_at": now_utc()})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise InvalidStateError(transition, request.id)
        await session.refresh(request)
        return request

    async def remove_if_pending(
        self,
        session: AsyncSession,
        request: LeaveRequest,
        transition: Transition,
    ) -> None:
        """Delete the row only if it is still PENDING."""
        result = await session.execute(
            delete(LeaveRequest)
            .where(
                col(LeaveRequest.id) == request.id,
                col(LeaveRequest.status) == LeaveRequestStatus.PENDING.value,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise InvalidStateError(transition, request.id)
        session.expunge(request)
