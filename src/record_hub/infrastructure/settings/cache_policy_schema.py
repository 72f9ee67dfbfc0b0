"""
Schema validation for the record cache policy configuration.

This module provides Pydantic models to validate the structure of
record_cache.yml, which decides per cache context and per source whether the
record cache is consulted before the search backend (primary), after every
other tier failed (fallback), or not at all (disabled).

Example record_cache.yml:

    default_context: Default
    cachable_sources: [Solr, Summon]
    contexts:
      Default:
        operating_mode: fallback
        sources:
          Summon: primary
      Favorite:
        operating_mode: primary
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT = "Default"


class OperatingMode(str, Enum):
    """Cache tier used for a source."""

    DISABLED = "disabled"
    PRIMARY = "primary"
    FALLBACK = "fallback"


class CacheContextConfig(BaseModel):
    """Schema for one cache context."""

    description: Optional[str] = Field(None, description="Human-readable description")
    operating_mode: OperatingMode = Field(
        OperatingMode.DISABLED, description="Mode for every cachable source"
    )
    sources: Dict[str, OperatingMode] = Field(
        default_factory=dict, description="Per-source operating mode overrides"
    )


class CachePolicyConfig(BaseModel):
    """Schema for complete record_cache.yml structure."""

    default_context: str = Field(
        DEFAULT_CONTEXT, description="Context used when none or an unknown one is set"
    )
    cachable_sources: List[str] = Field(
        default_factory=list, description="Sources the record cache may hold"
    )
    contexts: Dict[str, CacheContextConfig] = Field(
        default_factory=lambda: {DEFAULT_CONTEXT: CacheContextConfig()},
        description="Cache contexts by name",
    )

    @model_validator(mode="after")
    def validate_default_context(self) -> "CachePolicyConfig":
        """The default context must be defined."""
        if self.default_context not in self.contexts:
            raise ValueError(
                f"default_context '{self.default_context}' is not defined in contexts "
                f"({', '.join(sorted(self.contexts)) or 'none'})"
            )
        return self

    @classmethod
    def disabled(cls) -> "CachePolicyConfig":
        """Factory: no source is cached in any context."""
        return cls()


class CachePolicyConfigError(Exception):
    """Raised when record cache policy configuration validation fails."""

    pass


def load_cache_policy_config(
    config_path: Union[str, Path] = "config/record_cache.yml",
) -> CachePolicyConfig:
    """
    Load and validate the record cache policy configuration.

    Args:
        config_path: Path to the record_cache.yml file

    Returns:
        Validated CachePolicyConfig instance

    Raises:
        CachePolicyConfigError: If the file is missing, unreadable or invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise CachePolicyConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise CachePolicyConfigError(f"Invalid YAML in configuration file: {e}")
    except OSError as e:
        raise CachePolicyConfigError(f"Failed to load configuration file: {e}")

    if not isinstance(data, dict):
        raise CachePolicyConfigError(
            f"record_cache.yml must contain a mapping, got {type(data).__name__}"
        )

    try:
        config = CachePolicyConfig(**data)
    except ValidationError as e:
        raise CachePolicyConfigError(f"record_cache.yml validation failed: {e}")

    logger.info(
        "Loaded record cache policy with %d contexts and %d cachable sources",
        len(config.contexts),
        len(config.cachable_sources),
    )
    return config
