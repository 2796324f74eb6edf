"""
Configuration management for cloud-rename.

Loads settings from environment variables and .env files.
Priority: Environment vars > .env file > defaults
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Global settings singleton
_settings: RenameSettings | None = None


def _default_checkpoint_dir() -> Path:
    return Path.home() / ".config" / "cloud-rename" / "state"


class RenameSettings(BaseSettings):
    """Engine defaults loaded from CLOUD_RENAME_* environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CLOUD_RENAME_",
        extra="ignore",
    )

    # Scheduling
    request_interval: float = Field(default=0.8, ge=0)
    max_concurrent: int = Field(default=3, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)

    # Retry
    max_retries: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)
    retry_notifications: bool = Field(default=True)

    # Crash recovery
    checkpoint_dir: Path = Field(default_factory=_default_checkpoint_dir)
    checkpoint_max_age_minutes: float = Field(default=30, gt=0)

    # Logging
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()


def get_settings() -> RenameSettings:
    """Get or create the global settings singleton."""
    global _settings
    if _settings is None:
        _settings = RenameSettings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings (for testing)."""
    global _settings
    _settings = None
