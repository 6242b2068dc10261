"""Runtime configuration loaded from the environment.

Every field can be overridden with a ``SPORTSQUIZ_`` prefixed environment
variable or through an optional ``.env`` file next to the working directory.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings; values resolve env var > ``.env`` > default."""

    project_name: str = "Sports Quiz Arena"
    database_url: str = "sqlite://sportsquiz.db"
    generate_schemas: bool = True

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # --- Match timing & shape --- #
    round_duration_sec: float = Field(default=30.0, gt=0)
    questions_per_match: int = Field(default=10, ge=1)
    min_players: int = Field(default=2, ge=1)
    default_max_players: int = Field(default=4, ge=2)
    max_players_limit: int = Field(default=8, ge=2)

    model_config = SettingsConfigDict(
        env_prefix="SPORTSQUIZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (parsed once)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
