"""Password hashing and bearer token helpers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import jwt
from passlib.context import CryptContext

from .config import TOKEN_TTL
from .models import AuthToken

BCRYPT_ROUNDS = 10
TOKEN_ALGORITHM = "HS256"

_pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        return False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Sign and decode short-lived HS256 tokens that assert an email address."""

    def __init__(
        self,
        secret: str,
        *,
        ttl: timedelta = TOKEN_TTL,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if not secret:
            raise ValueError("A signing secret must be provided")
        self._secret = secret
        self._ttl = ttl
        self._clock = clock or _utcnow

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, email: str) -> AuthToken:
        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + self._ttl
        payload = {"email": email, "iat": issued_at, "exp": expires_at}
        token = jwt.encode(payload, self._secret, algorithm=TOKEN_ALGORITHM)
        return AuthToken(
            token=token,
            subject_email=email,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def decode(self, token: str) -> Dict[str, Any]:
        """Return the verified claims; raises :class:`jwt.InvalidTokenError` otherwise."""

        return jwt.decode(token, self._secret, algorithms=[TOKEN_ALGORITHM])


__all__ = ["BCRYPT_ROUNDS", "TokenIssuer", "hash_password", "verify_password"]
