# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header, status

from leaveflow.exceptions import AppError
from leaveflow.models.enums import RoleType
from leaveflow.schemas.auth import AuthContext
from leaveflow.services.request import LeaveRequestService, get_leave_service


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: RoleType = Header(default=RoleType.EMPLOYEE),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if auth.role != RoleType.ADMIN:
        raise AppError("Admin access required", status_code=status.HTTP_403_FORBIDDEN)
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def require_approver(
    auth: AuthDep,
) -> AuthContext:
    """Require a role that may act on other people's requests."""
    if auth.role not in (RoleType.ADMIN, RoleType.MANAGER):
        raise AppError("Admin or manager access required", status_code=status.HTTP_403_FORBIDDEN)
    return auth


ApproverDep = Annotated[AuthContext, Depends(require_approver)]

LeaveServiceDep = Annotated[LeaveRequestService, Depends(get_leave_service)]
