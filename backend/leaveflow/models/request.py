# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from leaveflow.models.enums import LeaveRequestStatus


class LeaveRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An employee's leave request with approval workflow state."""

    __tablename__ = "leave_request"
    __table_args__ = (sa.Index("ix_leave_request_user_status", "user_id", "status"),)

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id"), nullable=False),
    )
    start_date: date
    end_date: date
    duration: int
    reason: str | None = Field(default=None, max_length=500)
    status: str = Field(
        default=LeaveRequestStatus.PENDING,
        max_length=50,
        index=True,
        sa_column_kwargs={"server_default": "PENDING"},
    )
    comments: str | None = Field(default=None, max_length=500)
    approved_by_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True),
    )
