"""Admin login and self-service signup."""
from __future__ import annotations

import logging
import sqlite3
from typing import Optional

import anyio
import jwt

from .config import Settings
from .database import Database
from .errors import ConfigurationError, ConflictError, InternalError, UnauthorizedError
from .models import AuthToken, UserAccount
from .security import TokenIssuer, hash_password

logger = logging.getLogger("backoffice.auth")


class AuthService:
    """Decide admin logins and create user accounts.

    The admin identity lives only in :class:`Settings` and is compared as
    plain text. Self-registered users are stored with a bcrypt hash and
    signing up never grants admin access.
    """

    def __init__(self, settings: Settings, database: Database, tokens: TokenIssuer) -> None:
        self._settings = settings
        self._database = database
        self._tokens = tokens

    async def login_admin(self, email: object, password: object) -> AuthToken:
        if not self._settings.admin_configured:
            logger.error("Admin login attempted but admin credentials are not configured")
            raise ConfigurationError()

        # Non-string values (lists, objects) never match.
        if not isinstance(email, str) or not isinstance(password, str):
            logger.info("Rejected admin login with non-string credentials")
            raise UnauthorizedError()

        if email != self._settings.admin_email or password != self._settings.admin_password:
            logger.info("Rejected admin login for %r", email)
            raise UnauthorizedError()

        try:
            token = await anyio.to_thread.run_sync(self._tokens.issue, email)
        except jwt.PyJWTError as exc:
            logger.exception("Failed to sign admin token")
            raise InternalError("Failed to issue token") from exc

        logger.info("Admin %s logged in; token expires at %s", email, token.expires_at.isoformat())
        return token

    async def signup(self, email: Optional[str], password: Optional[str]) -> UserAccount:
        if email is None or password is None:
            logger.warning("Signup rejected: email and password are both required")
            raise InternalError()

        try:
            existing = await anyio.to_thread.run_sync(self._database.get_user_by_email, email)
        except sqlite3.DatabaseError as exc:
            logger.exception("Failed to look up account during signup")
            raise InternalError() from exc
        if existing is not None:
            raise ConflictError()

        try:
            password_hash = await anyio.to_thread.run_sync(hash_password, password)
        except ValueError as exc:
            logger.warning("Password for %s could not be hashed: %s", email, exc)
            raise InternalError() from exc

        # The UNIQUE constraint catches a concurrent signup that slipped past the lookup.
        try:
            account = await anyio.to_thread.run_sync(
                self._database.create_user, email, password_hash
            )
        except ValueError as exc:
            raise ConflictError() from exc
        except sqlite3.DatabaseError as exc:
            logger.exception("Failed to persist account for %s", email)
            raise InternalError() from exc

        logger.info("Registered account #%s for %s", account.id, account.email)
        return account

    async def logout(self) -> None:
        """Acknowledge a logout.

        Tokens are self-describing and no server-side session exists, so there
        is nothing to revoke; clients discard the token themselves.
        """

        logger.debug("Logout acknowledged")


__all__ = ["AuthService"]
