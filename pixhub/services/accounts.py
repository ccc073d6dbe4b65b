from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pixhub.core.config import Settings
from pixhub.core.errors import ConflictError, InvalidArgumentError, NotFoundError, StorageError, UnauthorizedError
from pixhub.models.user import User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user: User, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


class AccountService:
    def __init__(self, db: AsyncSession, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    async def _find_by_email(self, email: str) -> User | None:
        try:
            return (await self.db.execute(select(User).where(User.email == email))).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError("User lookup failed") from exc

    async def register(self, username: str | None, email: str | None, password: str | None) -> User:
        clean_name = (username or "").strip()
        clean_email = (email or "").strip().lower()
        if not clean_name or not clean_email or not password:
            raise InvalidArgumentError("username, email and password are required")

        if await self._find_by_email(clean_email) is not None:
            raise ConflictError("Email already registered")

        row = User(username=clean_name, email=clean_email, password_hash=hash_password(password))
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError("Email already registered") from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StorageError("Failed to register user") from exc
        logger.info("Registered user id=%s", row.id)
        return row

    async def authenticate(self, email: str | None, password: str | None) -> tuple[User, str]:
        clean_email = (email or "").strip().lower()
        if not clean_email or not password:
            raise InvalidArgumentError("email and password are required")

        user = await self._find_by_email(clean_email)
        if user is None:
            raise NotFoundError("User not found")
        if not verify_password(password, user.password_hash):
            raise UnauthorizedError("Incorrect password")
        return user, create_access_token(user, self.settings)
