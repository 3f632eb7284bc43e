# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter

from leaveflow.api.deps import AuthDep
from leaveflow.db import SessionDep
from leaveflow.schemas.balance import BalanceResponse
from leaveflow.services import balance as balance_service

user_balance_router = APIRouter(prefix="/users/{user_id}/balances", tags=["balances"])


@user_balance_router.get("", response_model=BalanceResponse)
async def get_user_balances(
    user_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> BalanceResponse:
    """Get a user's remaining annual and sick leave."""
    return await balance_service.get_visible_balances(session, auth, user_id)
