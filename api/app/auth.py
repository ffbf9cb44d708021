# auth.py

"""Bearer token authentication for inventory mutations."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from config import Settings

from .errors import TokenExpired, Unauthorized

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

ph = PasswordHasher()

# auto_error is off so a missing header surfaces as our Unauthorized error.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


class Token(BaseModel):
    """JWT access token returned after authentication."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class CurrentUser(BaseModel):
    """Subject extracted from a verified token."""

    username: str


def hash_password(password: str) -> str:
    return ph.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored hash."""

    try:
        return ph.verify(hashed_password, plain_password)
    except VerifyMismatchError:
        return False
    except InvalidHashError:
        logger.error("stored password hash is not a valid argon2 hash")
        return False
    except VerificationError as exc:  # pragma: no cover - unexpected
        logger.error("argon2 verification error: %s", exc)
        raise


def create_access_token(
    subject: str, settings: Settings, expires_delta: Optional[timedelta] = None
) -> Token:
    """Create a signed JWT for ``subject``."""

    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    now = datetime.now(timezone.utc)
    payload = {"sub": subject, "iat": now, "exp": now + lifetime}
    token = jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)
    return Token(access_token=token, expires_in=int(lifetime.total_seconds()))


def verify_token(token: str, settings: Settings) -> str:
    """Return the subject of ``token``.

    Raises :class:`TokenExpired` for an expired signature and
    :class:`Unauthorized` for anything else that does not verify.
    """

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except jwt.PyJWTError as exc:
        raise Unauthorized() from exc
    subject = payload.get("sub")
    if not subject:
        raise Unauthorized()
    return subject


def get_current_user(
    request: Request, token: Optional[str] = Depends(oauth2_scheme)
) -> CurrentUser:
    """Resolve the caller from the bearer token or raise ``Unauthorized``.

    Verification is purely cryptographic; the database is not consulted.
    """

    if not token:
        raise Unauthorized("Not authenticated")
    return CurrentUser(username=verify_token(token, request.app.state.settings))
