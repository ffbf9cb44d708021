"""User accounts backing the login endpoint."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from config import Settings

from ..auth import Token, create_access_token, hash_password, verify_password
from ..db import Database
from ..errors import InvalidCredentials, ValidationError
from ..schemas import UserOut

logger = logging.getLogger("api.users")


class UserService:
    def __init__(self, db: Database, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    async def register(self, username: str, password: str) -> UserOut:
        """Create an account or raise :class:`ValidationError` if taken."""
        existing = await self.db.execute(
            "SELECT id FROM users WHERE username = :username", {"username": username}
        )
        if existing:
            raise ValidationError("Username already taken")
        try:
            rows = await self.db.execute(
                "INSERT INTO users (username, password_hash) "
                "VALUES (:username, :password_hash) RETURNING id, username",
                {"username": username, "password_hash": hash_password(password)},
            )
        except IntegrityError as exc:
            # Lost a race with a concurrent registration.
            raise ValidationError("Username already taken") from exc
        logger.info("user registered id=%s", rows[0]["id"])
        return UserOut.model_validate(rows[0])

    async def authenticate(self, username: str, password: str) -> UserOut:
        """Return the user if the password matches, else raise."""
        rows = await self.db.execute(
            "SELECT id, username, password_hash FROM users WHERE username = :username",
            {"username": username},
        )
        if not rows or not verify_password(password, rows[0]["password_hash"]):
            raise InvalidCredentials()
        return UserOut(id=rows[0]["id"], username=rows[0]["username"])

    async def issue_token(self, username: str, password: str) -> Token:
        """Check credentials and return a signed access token."""
        user = await self.authenticate(username, password)
        logger.info("token issued user=%s", user.id)
        return create_access_token(user.username, self.settings)
