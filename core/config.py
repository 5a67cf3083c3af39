"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for TokenGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. database_url -> DATABASE_URL). Type coercion and validation are built in.

  @model_validator(mode="after"): Cross-field checks on the registration
      policy (password length bounds) and the derived log level.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'tokengate.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    app_name: str = "TokenGate"
    debug: bool = False
    # Empty string means "derive from debug": DEBUG when debug=true, else INFO.
    log_level: str = ""

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    # Mount point for the auth routes. "" serves /register, /login, ...;
    # "/api" serves /api/register, /api/login, ... for fetch-based pages.
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost", "http://localhost:8000", "http://127.0.0.1:8000"]

    # ------------------------------------------------------------------
    # Registration policy
    # ------------------------------------------------------------------

    name_max_length: int = 255
    password_min_length: int = 6
    # bcrypt only looks at the first 72 bytes; the cap keeps request bodies sane.
    password_max_length: int = 255
    # bcrypt work factor (log2 of iterations). Tests lower it to 4 for speed.
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_policy(self) -> "Settings":
        """Reject inconsistent length bounds and resolve the effective log level."""
        if self.password_min_length < 1:
            raise ValueError("PASSWORD_MIN_LENGTH must be at least 1.")
        if self.password_min_length > self.password_max_length:
            raise ValueError("PASSWORD_MIN_LENGTH must not exceed PASSWORD_MAX_LENGTH.")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        if self.name_max_length < 1:
            raise ValueError("NAME_MAX_LENGTH must be at least 1.")
        if self.api_prefix and not self.api_prefix.startswith("/"):
            self.api_prefix = "/" + self.api_prefix
        self.api_prefix = self.api_prefix.rstrip("/")
        if not self.log_level:
            self.log_level = "DEBUG" if self.debug else "INFO"
        self.log_level = self.log_level.upper()
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
