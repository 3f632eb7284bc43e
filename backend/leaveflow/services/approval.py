"""Approval policies for leave requests.

Each policy answers one question: may this approver approve or reject a
request owned by ``owner`` and filed under ``leave_type``? The policy is
picked from the approver's role (and, for self-approval, the leave type) on
every call, never cached across requests.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from leaveflow.models.enums import RoleType

if TYPE_CHECKING:
    from leaveflow.models.leave_type import LeaveType
    from leaveflow.models.user import User
    from leaveflow.schemas.auth import AuthContext

ApprovalPolicy = Callable[["AuthContext", "User", "LeaveType"], bool]


def admin_policy(approver: AuthContext, owner: User, leave_type: LeaveType) -> bool:
    """Admins may decide on any request."""
    return approver.role == RoleType.ADMIN


def manager_policy(approver: AuthContext, owner: User, leave_type: LeaveType) -> bool:
    """Managers may decide only for their direct reports."""
    return owner.manager_id is not None and owner.manager_id == approver.user_id


def self_approval_policy(approver: AuthContext, owner: User, leave_type: LeaveType) -> bool:
    """Owners may decide on their own requests when the leave type needs no approval."""
    return approver.user_id == owner.id and not leave_type.requires_approval


def deny_policy(approver: AuthContext, owner: User, leave_type: LeaveType) -> bool:
    return False


def select_approval_policy(approver: AuthContext, leave_type: LeaveType | None = None) -> ApprovalPolicy:
    """Pick the policy that governs ``approver``.

    Order: admin, manager, self-approval (only when a leave type is given and
    it does not require approval), otherwise deny.
    """
    if approver.role == RoleType.ADMIN:
        return admin_policy
    if approver.role == RoleType.MANAGER:
        return manager_policy
    if leave_type is not None and not leave_type.requires_approval:
        return self_approval_policy
    return deny_policy


def can_decide(approver: AuthContext, owner: User, leave_type: LeaveType) -> bool:
    """Return True if ``approver`` may approve or reject the owner's request."""
    policy = select_approval_policy(approver, leave_type)
    return policy(approver, owner, leave_type)
