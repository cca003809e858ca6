"""Application settings.

Values come from environment variables prefixed with ``CCP_TUTOR_`` or from a
``.env`` file in the working directory.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = str(Path.home() / ".ccp_tutor" / "tutor.db")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CCP_TUTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    db_path: str = Field(default=DEFAULT_DB_PATH, description="SQLite database file")
    learner_key: str = Field(default="default-learner", description="Key of the progress record")
    streak_threshold: int = Field(
        default=20, ge=1, description="Questions per day needed to extend the streak"
    )
    timezone: str | None = Field(
        default=None, description="IANA zone for day boundaries and badge hours; unset = device local"
    )
    log_level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    log_file: str | None = Field(default=None, description="Log file path; unset = stderr")


@lru_cache
def get_settings() -> Settings:
    return Settings()
