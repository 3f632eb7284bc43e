# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import TimestampMixin, UUIDBase
from leaveflow.models.enums import RoleType


class User(UUIDBase, TimestampMixin, table=True):
    """A staff member with a role, an optional direct manager and leave balances."""

    __tablename__ = "app_user"

    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: str = Field(max_length=255, unique=True)
    role: str = Field(default=RoleType.EMPLOYEE, max_length=50, sa_column_kwargs={"server_default": "EMPLOYEE"})
    # Not checked for cycles; approval only ever looks one hop up.
    manager_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True, index=True),
    )
    annual_leave_balance: int = Field(default=20, sa_column_kwargs={"server_default": "20"})
    sick_leave_balance: int = Field(default=10, sa_column_kwargs={"server_default": "10"})
