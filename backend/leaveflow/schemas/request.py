# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from leaveflow.models.enums import LeaveRequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateLeaveRequestPayload(BaseModel):
    """Request body for filing a new leave request."""

    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class UpdateLeaveRequestPayload(BaseModel):
    """Request body for editing a pending leave request. Omitted fields are kept."""

    leave_type_id: uuid.UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.start_date is not None and self.end_date is not None and self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions."""

    comments: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    user_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    duration: int
    reason: str | None
    status: LeaveRequestStatus
    comments: str | None
    approved_by_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class LeaveRequestListResponse(BaseModel):
    """List of leave requests."""

    items: list[LeaveRequestResponse]
    total: int
