# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from leaveflow.models.enums import RoleType


class AuthContext(BaseModel):
    """Authenticated actor as handed over by the auth layer."""

    user_id: uuid.UUID
    role: RoleType = RoleType.EMPLOYEE
