# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter

from leaveflow.api.deps import AuthDep
from leaveflow.db import SessionDep
from leaveflow.schemas.leave_type import LeaveTypeListResponse, LeaveTypeResponse
from leaveflow.services import leave_type as leave_type_service

leave_types_router = APIRouter(prefix="/leave-types", tags=["leave-types"])


@leave_types_router.get("", response_model=LeaveTypeListResponse)
async def list_leave_types(
    session: SessionDep,
    auth: AuthDep,
) -> LeaveTypeListResponse:
    """List all leave types."""
    return await leave_type_service.list_leave_types(session)


@leave_types_router.get("/{leave_type_id}", response_model=LeaveTypeResponse)
async def get_leave_type(
    leave_type_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveTypeResponse:
    """Get a single leave type."""
    return await leave_type_service.get_leave_type(session, leave_type_id)
