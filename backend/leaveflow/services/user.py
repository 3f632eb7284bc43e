from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leaveflow.exceptions import NotFoundError
from leaveflow.models.user import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


async def get_user_or_404(
    session: AsyncSession,
    user_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> User:
    """Fetch a user by ID, optionally locking the row. Raises 404 if not found."""
    query = select(User).where(col(User.id) == user_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User", user_id)
    return user
