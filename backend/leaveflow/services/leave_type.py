from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leaveflow.exceptions import NotFoundError
from leaveflow.models.enums import LeaveCategory
from leaveflow.models.leave_type import LeaveType
from leaveflow.schemas.leave_type import LeaveTypeListResponse, LeaveTypeResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def _build_leave_type_response(leave_type: LeaveType) -> LeaveTypeResponse:
    return LeaveTypeResponse(
        id=leave_type.id,
        name=leave_type.name,
        description=leave_type.description,
        category=LeaveCategory(leave_type.category),
        requires_approval=leave_type.requires_approval,
        deducts_balance=leave_type.deducts_balance,
    )


async def get_leave_type_or_404(session: AsyncSession, leave_type_id: uuid.UUID) -> LeaveType:
    """Fetch a leave type by ID. Raises 404 if not found."""
    result = await session.execute(select(LeaveType).where(col(LeaveType.id) == leave_type_id))
    leave_type = result.scalar_one_or_none()
    if leave_type is None:
        raise NotFoundError("Leave type", leave_type_id)
    return leave_type


async def get_leave_type(session: AsyncSession, leave_type_id: uuid.UUID) -> LeaveTypeResponse:
    """Get a single leave type."""
    return _build_leave_type_response(await get_leave_type_or_404(session, leave_type_id))


async def list_leave_types(session: AsyncSession) -> LeaveTypeListResponse:
    """List all leave types ordered by name."""
    result = await session.execute(select(LeaveType).order_by(col(LeaveType.name)))
    leave_types = list(result.scalars().all())
    return LeaveTypeListResponse(
        items=[_build_leave_type_response(lt) for lt in leave_types],
        total=len(leave_types),
    )
