"""Unit tests for core/config.py -- Settings defaults and validation."""

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("BCRYPT_ROUNDS", "DEBUG", "LOG_LEVEL", "API_PREFIX", "DATABASE_URL", "PASSWORD_MIN_LENGTH"):
        monkeypatch.delenv(var, raising=False)
    s =Settings(_env_file=None)
    assert s.password_min_length == 6
    assert s.name_max_length == 255
    assert s.bcrypt_rounds == 12
    assert s.api_prefix == ""
    assert s.log_level == "INFO"
    assert s.database_url.startswith("sqlite:///")


def test_debug_sets_debug_log_level() -> None:
    assert Settings(_env_file=None, debug=True).log_level == "DEBUG"


def test_explicit_log_level_wins() -> None:
    assert Settings(_env_file=None, debug=True, log_level="warning").log_level == "WARNING"


def test_env_vars_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PASSWORD_MIN_LENGTH", "10")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///elsewhere.db")
    s = Settings(_env_file=None)
    assert s.password_min_length == 10
    assert s.database_url == "sqlite:///elsewhere.db"


@pytest.mark.parametrize(("raw", "expected"), [("api", "/api"), ("/api/", "/api"), ("/", "")])
def test_api_prefix_is_normalized(raw: str, expected: str) -> None:
    assert Settings(_env_file=None, api_prefix=raw).api_prefix == expected


@pytest.mark.parametrize(
    "overrides",
    [
        {"password_min_length": 0},
        {"password_min_length": 20, "password_max_length": 10},
        {"name_max_length": 0},
        {"bcrypt_rounds": 3},
    ],
)
def test_inconsistent_policy_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
