from __future__ import annotations

import sys
from dataclasses import FrozenInstanceError
from datetime import timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backoffice.config import DEFAULT_PORT, load_settings, resolve_database_path


def test_settings_read_from_environment(tmp_path: Path) -> None:
    settings = load_settings(
        {
            "PORT": "8080",
            "JWT_SECRET": "configured-secret",
            "ADMIN_EMAIL": "admin@example.com",
            "ADMIN_PASSWORD": "hunter2",
            "BACKOFFICE_DB_PATH": str(tmp_path / "store.sqlite3"),
            "BACKOFFICE_CORS_ORIGINS": "http://localhost:5173, https://shop.example.com",
        }
    )

    assert settings.port == 8080
    assert settings.jwt_secret == "configured-secret"
    assert settings.admin_email == "admin@example.com"
    assert settings.admin_password == "hunter2"
    assert settings.admin_configured
    assert settings.database_path == (tmp_path / "store.sqlite3").resolve()
    assert settings.cors_origins == ("http://localhost:5173", "https://shop.example.com")
    assert settings.token_ttl == timedelta(hours=1)


def test_defaults_when_environment_is_empty() -> None:
    settings = load_settings({})

    assert settings.port == DEFAULT_PORT == 5000
    assert settings.cors_origins == ("*",)
    assert settings.admin_email is None
    assert settings.admin_password is None
    assert not settings.admin_configured
    assert settings.database_path.name == "backoffice.sqlite3"


def test_missing_jwt_secret_generates_random_secret_per_load() -> None:
    first = load_settings({})
    second = load_settings({})

    assert first.jwt_secret
    assert first.jwt_secret != second.jwt_secret
    assert first.jwt_secret != "your_jwt_secret_key"


def test_empty_admin_values_count_as_missing() -> None:
    settings = load_settings({"ADMIN_EMAIL": "admin@example.com", "ADMIN_PASSWORD": ""})
    assert settings.admin_password is None
    assert not settings.admin_configured


def test_invalid_port_is_rejected() -> None:
    with pytest.raises(ValueError):
        load_settings({"PORT": "not-a-port"})
    with pytest.raises(ValueError):
        load_settings({"PORT": "70000"})


def test_settings_are_immutable() -> None:
    settings = load_settings({"JWT_SECRET": "secret"})
    with pytest.raises(FrozenInstanceError):
        settings.admin_email = "intruder@example.com"  # type: ignore[misc]


def test_resolve_database_path_expands_user(tmp_path: Path) -> None:
    assert resolve_database_path(str(tmp_path / "db.sqlite3")) == (tmp_path / "db.sqlite3").resolve()
    assert resolve_database_path(None).parent.name == "data"
