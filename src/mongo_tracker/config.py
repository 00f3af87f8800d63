"""Tracker configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrackerSettings(BaseSettings):
    """Settings loaded from `MONGO_TRACKER_*` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MONGO_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="json")

    # Patch synthesis: emit $unset instead of `$set: null` when a value is removed
    unset_null_fields: bool = Field(default=False)

    # Bulk writes
    ordered_bulk_write: bool = Field(default=True)


@lru_cache
def get_settings() -> TrackerSettings:
    """Get cached settings instance."""
    return TrackerSettings()
