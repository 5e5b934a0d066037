"""Application configuration via Pydantic Settings.

Reads environment variables (and optional .env file) and validates them
at startup. Use ``get_settings()`` to obtain a cached singleton.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_LANGUAGES = ("EN", "RU")


class Settings(BaseSettings):
    """Validated application settings sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # --- Storage -----------------------------------------------------------
    DATABASE_URL: str = "sqlite+aiosqlite:///./foodabuser.db"
    # False on targets without an embedded relational store; every store
    # operation then degrades to its pass-through result.
    STORE_ENABLED: bool = True
    DATA_DIR: Path = Path(".foodabuser")
    SECURE_STORE_DIR: Path = Path(".foodabuser/secure")
    BACKUP_DIR: Path = Path(".foodabuser/backups")
    # Run `alembic upgrade head` before the API opens the store.
    RUN_MIGRATIONS: bool = False

    # --- Timeouts ----------------------------------------------------------
    SECURE_STORE_TIMEOUT_SECONDS: float = 2.0
    INIT_TIMEOUT_SECONDS: float = 3.0

    # --- Session guard -----------------------------------------------------
    PIN_MAX_ATTEMPTS: int = 5
    PIN_LOCKOUT_SECONDS: int = 5 * 60  # 5 minutes
    PIN_RESET_AFTER_ATTEMPTS: int = 3
    PIN_HASH_ITERATIONS: int = 200_000

    # --- Locale ------------------------------------------------------------
    TIMEZONE: str = "UTC"
    DEFAULT_LANGUAGE: str = "RU"

    LOG_LEVEL: str = "INFO"

    # --- Validators ------------------------------------------------------
    @field_validator(
        "SECURE_STORE_TIMEOUT_SECONDS",
        "INIT_TIMEOUT_SECONDS",
        "PIN_MAX_ATTEMPTS",
        "PIN_LOCKOUT_SECONDS",
        "PIN_RESET_AFTER_ATTEMPTS",
        "PIN_HASH_ITERATIONS",
    )
    @classmethod
    def _validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("TIMEZONE")
    @classmethod
    def _validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {v}") from exc
        return v

    @field_validator("DEFAULT_LANGUAGE")
    @classmethod
    def _validate_language(cls, v: str) -> str:
        code = v.upper()
        if code not in SUPPORTED_LANGUAGES:
            raise ValueError(f"DEFAULT_LANGUAGE must be one of {', '.join(SUPPORTED_LANGUAGES)}")
        return code

    @model_validator(mode="after")
    def _validate_reset_threshold(self) -> Settings:
        """The reset offer must appear before the lockout kicks in."""
        if self.PIN_RESET_AFTER_ATTEMPTS > self.PIN_MAX_ATTEMPTS:
            raise ValueError("PIN_RESET_AFTER_ATTEMPTS must not exceed PIN_MAX_ATTEMPTS")
        return self

    @property
    def tz(self) -> ZoneInfo:
        """Timezone used for day/week/month boundaries."""
        return ZoneInfo(self.TIMEZONE)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings singleton."""
    return Settings()
