"""
Infrastructure Settings and Configuration

Provides utilities for loading and validating infrastructure-level
configuration files.

Components:
- cache_policy_schema: Pydantic models for record_cache.yml validation
"""

from record_hub.infrastructure.settings.cache_policy_schema import (
    CacheContextConfig,
    CachePolicyConfig,
    CachePolicyConfigError,
    OperatingMode,
    load_cache_policy_config,
)

__all__ = [
    "CacheContextConfig",
    "CachePolicyConfig",
    "CachePolicyConfigError",
    "OperatingMode",
    "load_cache_policy_config",
]
