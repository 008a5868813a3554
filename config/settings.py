"""Application settings and configuration management."""
from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/mock_interview.db")
    CONFIG_PATH: str = Field(default="app_config.json")

    FEEDBACK_TIMEOUT_S: float = Field(default=30.0, gt=0.0)
    FEEDBACK_WORKERS: int = Field(default=4, ge=1)
    MIN_TRANSCRIPT_CHARS: int = 10
    DEFAULT_QUESTION_COUNT: int = Field(default=4, ge=1)
    DEFAULT_DURATION_MINUTES: int = 30

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")


settings = Settings()
