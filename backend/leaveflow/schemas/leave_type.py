# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from leaveflow.models.enums import LeaveCategory


class LeaveTypeResponse(BaseModel):
    """Response schema for a leave type."""

    id: uuid.UUID
    name: str
    description: str | None
    category: LeaveCategory
    requires_approval: bool
    deducts_balance: bool


class LeaveTypeListResponse(BaseModel):
    """All configured leave types."""

    items: list[LeaveTypeResponse]
    total: int
