from __future__ import annotations

from fastapi import APIRouter, Depends, status

from pixhub.api.v1.deps import get_account_service
from pixhub.schemas.auth import LoginIn, LoginOut, RegisterIn, UserOut
from pixhub.services.accounts import AccountService

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterIn, accounts: AccountService = Depends(get_account_service)) -> UserOut:
    user = await accounts.register(payload.username, payload.email, payload.password)
    return UserOut.from_row(user)


@router.post("/login", response_model=LoginOut)
async def login(payload: LoginIn, accounts: AccountService = Depends(get_account_service)) -> LoginOut:
    user, token = await accounts.authenticate(payload.email, payload.password)
    return LoginOut(id=user.id, username=user.username, email=user.email, access_token=token)
