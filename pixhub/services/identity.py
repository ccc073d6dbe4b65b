from __future__ import annotations

import uuid
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pixhub.core.errors import StorageError
from pixhub.models.user import User


class IdentityGateway(Protocol):
    async def user_exists(self, user_id: uuid.UUID) -> bool: ...


class SqlIdentityGateway:
    """Answers user lookups from the ``users`` table; never mutates it."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def user_exists(self, user_id: uuid.UUID) -> bool:
        try:
            found = (await self.db.execute(select(User.id).where(User.id == user_id))).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError("User lookup failed") from exc
        return found is not None
