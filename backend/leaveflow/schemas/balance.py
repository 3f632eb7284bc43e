# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel


class BalanceResponse(BaseModel):
    """Remaining leave days for one user."""

    user_id: uuid.UUID
    annual_leave_balance: int
    sick_leave_balance: int
