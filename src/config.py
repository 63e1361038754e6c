# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Application configuration using Pydantic settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./data/pmpulse.db",
        description="Database URL",
    )

    # Security
    encryption_key: str = Field(
        default="",
        description="Fernet encryption key for encrypted settings",
    )

    # Application mode
    standalone_mode: bool = Field(
        default=False,
        description="Expose interactive API docs for development",
    )

    # Utility account suggestions
    suggestion_window_days: int = Field(
        default=90,
        ge=1,
        le=3650,
        description="Look-back window for unmapped GL account suggestions",
    )

    # Server configuration
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8000,
        description="Server port",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings instance.
    """
    return Settings()
