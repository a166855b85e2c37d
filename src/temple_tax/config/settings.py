"""Application settings using Pydantic Settings.

Centralized configuration for the temple tax engine. Every field can be
overridden through an ``APP_`` prefixed environment variable or a ``.env``
file in the working directory.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    name: str = Field(default="Temple Tax Engine", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment name")

    # API settings
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # CORS
    cors_origins: list = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # Tenant scope used when a request carries no X-Temple-ID header
    default_temple_id: int = Field(default=1, ge=1, description="Fallback temple id")

    # Range of years a tax policy may be configured for
    policy_year_min: int = Field(default=2020, description="Earliest configurable policy year")
    policy_year_max: int = Field(default=2050, description="Latest configurable policy year")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON formatted logs")
    log_file: Optional[str] = Field(default=None, description="Optional JSON log file path")

    @model_validator(mode="after")
    def _check_year_range(self) -> "Settings":
        if self.policy_year_min > self.policy_year_max:
            raise ValueError(
                f"policy_year_min ({self.policy_year_min}) must not exceed "
                f"policy_year_max ({self.policy_year_max})"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Cached settings loaded from environment.
    """
    return Settings()
