"""RecordLoaderFactory - Dependency injection for the record loader.

Builds a RecordLoader from application settings: loader config, record
factory, in-memory record cache with its YAML policy, and fallback registry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from record_hub.infrastructure.settings.cache_policy_schema import (
    load_cache_policy_config,
)

from .cache import CachePolicy, RecordCache
from .factory import RecordFactory
from .fallback import FallbackLoaderRegistry
from .loader import RecordLoader
from .loader_config import RecordLoaderConfig

if TYPE_CHECKING:
    from record_hub.config.settings import Settings

    from .protocols import SearchService

logger = logging.getLogger(__name__)


class RecordLoaderFactory:
    """Factory for creating RecordLoader instances."""

    @classmethod
    def create(
        cls,
        search_service: "SearchService",
        fallback_loaders: Optional[FallbackLoaderRegistry] = None,
        record_factory: Optional[RecordFactory] = None,
        settings: Optional["Settings"] = None,
    ) -> RecordLoader:
        """Create a record loader wired from settings.

        Args:
            search_service: Search backend the loader queries
            fallback_loaders: Optional fallback registry (empty if omitted)
            record_factory: Optional record factory
            settings: Settings to use instead of the global ones

        Returns:
            RecordLoader

        Raises:
            CachePolicyConfigError: If the record cache is enabled and its
                configuration file is missing or invalid
        """
        if settings is None:
            from record_hub.config.settings import get_settings

            settings = get_settings()

        return RecordLoader(
            search_service,
            record_factory=record_factory or RecordFactory(),
            record_cache=cls._create_cache(settings),
            fallback_loaders=fallback_loaders or FallbackLoaderRegistry(),
            config=RecordLoaderConfig.from_settings(settings),
        )

    @classmethod
    def _create_cache(cls, settings: "Settings") -> Optional[RecordCache]:
        """Create the record cache, or None when disabled."""
        if not settings.record_cache_enabled:
            logger.info("Record cache disabled; loading without a cache tier")
            return None
        policy_config = load_cache_policy_config(settings.record_cache_config)
        return RecordCache(CachePolicy(policy_config))
