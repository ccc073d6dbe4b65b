from __future__ import annotations

import uuid

from pixhub.models.user import User
from pixhub.schemas.common import CamelModel


class RegisterIn(CamelModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None


class LoginIn(CamelModel):
    email: str | None = None
    password: str | None = None


class UserOut(CamelModel):
    id: uuid.UUID
    username: str
    email: str

    @classmethod
    def from_row(cls, row: User) -> UserOut:
        return cls(id=row.id, username=row.username, email=row.email)


class LoginOut(UserOut):
    access_token: str
    token_type: str = "bearer"
