"""Application configuration settings."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    secret_key: str = Field(
        description="Secret shared with the auth service to verify JWT tokens",
        min_length=1,
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before locally issued access tokens expire",
        gt=0,
    )
    store_backend: Literal["memory", "sql"] = Field(
        default="memory",
        description="Store adapter used to persist notifications and users",
    )
    database_url: str = Field(
        default="sqlite:///./notifications.db",
        description="Database connection URL used by the SQL store adapter",
        min_length=1,
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used when rendering notification timestamps",
    )
    delivery_dedupe_capacity: int = Field(
        default=256,
        description="Number of recently delivered notification ids remembered per recipient",
        gt=0,
    )
    delivery_retained_listeners: int = Field(
        default=128,
        description="Number of disconnected recipients whose delivery state is kept",
        ge=0,
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @model_validator(mode="after")
    def _validate_log_level(self) -> "Settings":
        level = self.log_level.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL '{self.log_level}' is not a valid logging level")
        self.log_level = level
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
