from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import UUIDBase
from leaveflow.models.enums import LeaveCategory


class LeaveType(UUIDBase, table=True):
    """Kind of leave a request is filed under. Read-only to the request workflow."""

    __tablename__ = "leave_type"

    name: str = Field(max_length=100)
    description: str | None = Field(default=None, max_length=255)
    category: str = Field(default=LeaveCategory.OTHER, max_length=50, sa_column_kwargs={"server_default": "OTHER"})
    requires_approval: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
    deducts_balance: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
