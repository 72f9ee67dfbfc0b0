"""Configuration management for RecordHub.

This module provides centralized configuration loaded from environment variables
with validation using Pydantic BaseSettings.

Usage:
    >>> from record_hub.config import get_settings
    >>> settings = get_settings()
    >>> settings.default_source
    'Solr'
"""

from record_hub.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
