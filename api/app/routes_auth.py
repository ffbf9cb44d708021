"""Registration and login endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from .deps.services import get_user_service
from .schemas import Credentials
from .services import UserService
from .utils.responses import ok

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register")
async def register(
    credentials: Credentials, users: UserService = Depends(get_user_service)
) -> dict:
    user = await users.register(credentials.username, credentials.password)
    return ok(user)


@router.post("/login", summary="Login")
async def login(
    credentials: Credentials, users: UserService = Depends(get_user_service)
) -> dict:
    """Authenticate using username/password and return a JWT."""

    token = await users.issue_token(credentials.username, credentials.password)
    return ok(token)
