"""
Record cache tier.

CachePolicy answers, for the active cache context, whether a source is
cache-primary, cache-fallback or uncached. RecordCache is an in-memory record
store that applies a CachePolicy; persistent stores only need to expose the
same methods (see RecordCacheProtocol).
"""

import copy
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from record_hub.infrastructure.settings.cache_policy_schema import (
    CachePolicyConfig,
    OperatingMode,
)
from record_hub.utils.logging import get_logger

from .types import Record

logger = get_logger(__name__)


class CachePolicy:
    """
    Context-aware cache policy backed by a CachePolicyConfig.

    Example:
        >>> config = CachePolicyConfig(
        ...     cachable_sources=["Solr"],
        ...     contexts={"Default": {"operating_mode": "primary"}},
        ... )
        >>> policy = CachePolicy(config)
        >>> policy.is_primary("Solr"), policy.is_fallback("Solr")
        (True, False)
    """

    def __init__(self, config: Optional[CachePolicyConfig] = None) -> None:
        self.config = config or CachePolicyConfig.disabled()
        self._context = self.config.default_context

    @property
    def context(self) -> str:
        return self._context

    def set_context(self, context: str) -> None:
        """Switch the active context; unknown contexts use the default one."""
        if context not in self.config.contexts:
            logger.debug(
                "record_cache.unknown_context",
                context=context,
                default_context=self.config.default_context,
            )
            context = self.config.default_context
        self._context = context

    def operating_mode(self, source: str) -> OperatingMode:
        if source not in self.config.cachable_sources:
            return OperatingMode.DISABLED
        context_config = self.config.contexts[self._context]
        return context_config.sources.get(source, context_config.operating_mode)

    def is_primary(self, source: str) -> bool:
        return self.operating_mode(source) is OperatingMode.PRIMARY

    def is_fallback(self, source: str) -> bool:
        return self.operating_mode(source) is OperatingMode.FALLBACK


class RecordCache:
    """
    In-memory record cache keyed by (source, unique id).

    Lookups return copies so callers can modify what they receive without
    touching the cached record.
    """

    def __init__(self, policy: Optional[CachePolicy] = None) -> None:
        self.policy = policy or CachePolicy()
        self._records: Dict[Tuple[str, str], Record] = {}
        self._lock = threading.Lock()

    def is_primary(self, source: str) -> bool:
        return self.policy.is_primary(source)

    def is_fallback(self, source: str) -> bool:
        return self.policy.is_fallback(source)

    def set_context(self, context: str) -> None:
        self.policy.set_context(context)

    def store(self, record: Record) -> None:
        """Create or update the cached copy of a record."""
        key = (record.source_identifier(), record.unique_id())
        with self._lock:
            self._records[key] = copy.deepcopy(record)

    def lookup(self, record_id: str, source: str) -> List[Record]:
        return self.lookup_batch([record_id], source)

    def lookup_batch(self, ids: Sequence[str], source: str) -> List[Record]:
        """Return cached records for the ids found, in requested order."""
        found: List[Record] = []
        seen = set()
        with self._lock:
            for record_id in ids:
                if record_id in seen:
                    continue
                seen.add(record_id)
                record = self._records.get((source, record_id))
                if record is not None:
                    found.append(copy.deepcopy(record))
        return found

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
