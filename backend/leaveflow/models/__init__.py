from sqlmodel import SQLModel

from leaveflow.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leaveflow.models.enums import LeaveCategory, LeaveRequestStatus, RoleType, Transition
from leaveflow.models.leave_type import LeaveType
from leaveflow.models.request import LeaveRequest
from leaveflow.models.user import User

__all__ = [
    "LeaveCategory",
    "LeaveRequest",
    "LeaveRequestStatus",
    "LeaveType",
    "RoleType",
    "SQLModel",
    "TimestampMixin",
    "Transition",
    "UUIDBase",
    "UpdatedAtMixin",
    "User",
]
