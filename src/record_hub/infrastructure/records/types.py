"""
Type definitions for record loading.

This module defines the request, record and result types shared by the
RecordLoader, the IdentifierList and the BatchReconciler.

Records of every origin (cache, search backend, fallback loader, placeholder)
are handled through the same Record protocol; RecordDriver is the concrete
implementation shipped with the loader, tagged by ``kind``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

MISSING_KIND = "missing"
DEFAULT_KIND = "default"


class ResolutionTier(Enum):
    """Tier that produced a resolved record."""

    CACHE_PRIMARY = "cache_primary"
    BACKEND = "backend"
    FALLBACK = "fallback"
    CACHE_FALLBACK = "cache_fallback"


@runtime_checkable
class Record(Protocol):
    """Capabilities every resolved record exposes."""

    def unique_id(self) -> str:
        ...

    def source_identifier(self) -> str:
        ...

    def previous_unique_id(self) -> Optional[str]:
        """ID the record was known under before a rename/merge, if any."""
        ...


@dataclass
class RecordDriver:
    """
    Concrete record object.

    Attributes:
        raw_data: Record fields; ``id`` holds the unique ID.
        source: Source identifier the record belongs to.
        kind: Record kind tag; ``"missing"`` marks a placeholder.
        previous_id: Superseded unique ID when the record was resolved
            under a new canonical ID.
    """

    raw_data: Dict[str, Any] = field(default_factory=dict)
    source: str = ""
    kind: str = DEFAULT_KIND
    previous_id: Optional[str] = None

    def unique_id(self) -> str:
        value = self.raw_data.get("id")
        return "" if value is None else str(value)

    def source_identifier(self) -> str:
        return self.source

    def previous_unique_id(self) -> Optional[str]:
        return self.previous_id

    def set_raw_data(self, data: Dict[str, Any]) -> None:
        self.raw_data = dict(data)

    def set_source_identifier(self, source: str) -> None:
        self.source = source

    def set_previous_unique_id(self, previous_id: Optional[str]) -> None:
        self.previous_id = previous_id

    def get_field(self, name: str, default: Any = None) -> Any:
        return self.raw_data.get(name, default)

    @property
    def is_missing(self) -> bool:
        """True for placeholder records synthesized for unresolved requests."""
        return self.kind == MISSING_KIND


@dataclass(frozen=True)
class RequestedEntry:
    """
    One request slot of a batch load.

    Attributes:
        position: Index of the request in the caller's input.
        source: Requested record source.
        id: Requested record ID (may be empty).
        extra_fields: Seed fields used only if the entry stays unresolved.
    """

    position: int
    source: str
    id: str
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.id)


@dataclass
class SourceResolution:
    """
    Per-source result of the tiered lookup.

    Each tier keeps its own list so callers can tell where records came from;
    ``records`` returns them in discovery order.
    """

    source: str
    requested: List[str] = field(default_factory=list)
    cache_primary: List[Any] = field(default_factory=list)
    backend: List[Any] = field(default_factory=list)
    fallback: List[Any] = field(default_factory=list)
    cache_fallback: List[Any] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)
    backend_error: Optional[BaseException] = None

    @property
    def records(self) -> List[Any]:
        return self.cache_primary + self.backend + self.fallback + self.cache_fallback

    def hits_by_tier(self) -> Dict[str, int]:
        return {
            ResolutionTier.CACHE_PRIMARY.value: len(self.cache_primary),
            ResolutionTier.BACKEND.value: len(self.backend),
            ResolutionTier.FALLBACK.value: len(self.fallback),
            ResolutionTier.CACHE_FALLBACK.value: len(self.cache_fallback),
        }


@dataclass
class BatchStatistics:
    """
    Statistics from a batch load.

    Attributes:
        total_requested: Number of requested entries (duplicates included).
        distinct_lookups: Number of distinct non-empty ids looked up.
        sources: Sources processed, in processing order.
        hits_by_tier: Records returned per tier across all sources.
        placeholders: Entries filled with placeholder records.
        duplicates_filled: Extra slots satisfied by copying a resolved record.
        dropped_records: Records that matched no unclaimed position.
        backend_failures: Sources whose backend failure was tolerated.
    """

    total_requested: int = 0
    distinct_lookups: int = 0
    sources: List[str] = field(default_factory=list)
    hits_by_tier: Dict[str, int] = field(
        default_factory=lambda: {tier.value: 0 for tier in ResolutionTier}
    )
    placeholders: int = 0
    duplicates_filled: int = 0
    dropped_records: int = 0
    backend_failures: List[str] = field(default_factory=list)

    def add_source(self, resolution: SourceResolution) -> None:
        self.sources.append(resolution.source)
        for tier, hits in resolution.hits_by_tier().items():
            self.hits_by_tier[tier] = self.hits_by_tier.get(tier, 0) + hits
        if resolution.backend_error is not None:
            self.backend_failures.append(resolution.source)

    @property
    def resolved(self) -> int:
        return self.total_requested - self.placeholders

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary for logging."""
        return {
            "total_requested": self.total_requested,
            "distinct_lookups": self.distinct_lookups,
            "sources": list(self.sources),
            "hits_by_tier": dict(self.hits_by_tier),
            "resolved": self.resolved,
            "placeholders": self.placeholders,
            "duplicates_filled": self.duplicates_filled,
            "dropped_records": self.dropped_records,
            "backend_failures": list(self.backend_failures),
        }


@dataclass
class BatchResolutionResult:
    """
    Result of a batch load.

    Attributes:
        records: Resolved or placeholder records, in requested order.
        statistics: Statistics for the batch.
    """

    records: List[Any]
    statistics: BatchStatistics
