"""Runtime configuration for the backoffice service."""
from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional, Tuple

logger = logging.getLogger("backoffice.config")

DEFAULT_PORT = 5000
TOKEN_TTL = timedelta(hours=1)


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, built once at startup and shared read-only."""

    jwt_secret: str
    database_path: Path
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None
    port: int = DEFAULT_PORT
    cors_origins: Tuple[str, ...] = ("*",)
    token_ttl: timedelta = TOKEN_TTL

    @property
    def admin_configured(self) -> bool:
        return bool(self.admin_email) and bool(self.admin_password)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "backoffice.sqlite3").resolve(strict=False)


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    return value


def _parse_origins(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ("*",)
    origins = tuple(item.strip() for item in raw.split(",") if item.strip())
    return origins or ("*",)


def _parse_port(raw: Optional[str]) -> int:
    if not raw:
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError as exc:
        raise ValueError(f"PORT must be an integer, got {raw!r}") from exc
    if not 0 < port < 65536:
        raise ValueError(f"PORT must be between 1 and 65535, got {port}")
    return port


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from environment variables."""

    env = os.environ if environ is None else environ

    jwt_secret = _optional(env.get("JWT_SECRET"))
    if jwt_secret is None:
        logger.warning(
            "JWT_SECRET is not set; using a random per-process secret. Issued tokens"
            " will stop validating after a restart."
        )
        jwt_secret = secrets.token_urlsafe(32)

    settings = Settings(
        jwt_secret=jwt_secret,
        database_path=resolve_database_path(env.get("BACKOFFICE_DB_PATH")),
        admin_email=_optional(env.get("ADMIN_EMAIL")),
        admin_password=_optional(env.get("ADMIN_PASSWORD")),
        port=_parse_port(env.get("PORT")),
        cors_origins=_parse_origins(env.get("BACKOFFICE_CORS_ORIGINS")),
    )

    if not settings.admin_configured:
        logger.warning("ADMIN_EMAIL or ADMIN_PASSWORD is not set; admin login will fail")

    return settings


__all__ = ["DEFAULT_PORT", "Settings", "TOKEN_TTL", "load_settings", "resolve_database_path"]
