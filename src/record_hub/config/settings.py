"""
Configuration management for RecordHub.

This module provides environment-based configuration using Pydantic BaseSettings,
allowing the record loader to be tuned per deployment (cache policy file,
default source, batch concurrency) without code changes.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("RH_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Environment variables are automatically loaded with the RH_ prefix.
    For example, RH_DEFAULT_SOURCE will override the default_source setting.

    Deployment fields (no prefix):
    - ENVIRONMENT: Deployment environment (dev, staging, prod)
    - LOG_LEVEL: Logging level (uppercase)
    """

    ENVIRONMENT: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        validation_alias="ENVIRONMENT",
        description="Deployment environment",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )

    # Record loader configuration
    default_source: str = Field(
        default="Solr",
        description="Source used for requests that do not name one",
    )
    tolerate_backend_exceptions: bool = Field(
        default=False,
        description="Default backend-exception tolerance for batch loads",
    )
    batch_max_workers: int = Field(
        default=1,
        ge=1,
        description="Maximum number of sources resolved concurrently per batch",
    )
    batch_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Deadline for a whole batch load (None = no deadline)",
    )

    # Record cache configuration
    record_cache_enabled: bool = Field(
        default=True, description="Enable the local record cache tier"
    )
    record_cache_config: str = Field(
        default="./config/record_cache.yml",
        description="Path to the record cache policy configuration file",
    )

    @model_validator(mode="after")
    def validate_log_level(self) -> "Settings":
        """Reject log levels the logging module does not know about."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.LOG_LEVEL.upper() not in allowed:
            raise ValueError(
                f"LOG_LEVEL must be one of {sorted(allowed)}, got: {self.LOG_LEVEL}"
            )
        return self

    model_config = SettingsConfigDict(
        env_prefix="RH_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded once and reused across
    the application lifecycle.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()

