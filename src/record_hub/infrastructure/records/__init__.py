"""
Record loading.

Loads record objects for (source, id) requests from the record cache, the
search backend and per-source fallback loaders, in requested order.
"""

from .cache import CachePolicy, RecordCache
from .context import ResolutionContext
from .exceptions import (
    BackendError,
    BackendFailureError,
    FallbackLoaderNotFoundError,
    InvalidIdentifierError,
    PositionClaimError,
    RecordLoaderError,
    RecordNotFoundError,
    ResolutionCancelledError,
    ResolutionTimeoutError,
)
from .factory import RecordFactory
from .fallback import FallbackLoaderRegistry
from .id_list import IdentifierList
from .loader import BatchReconciler, RecordLoader
from .loader_config import RecordLoaderConfig
from .loader_factory import RecordLoaderFactory
from .types import (
    MISSING_KIND,
    BatchResolutionResult,
    BatchStatistics,
    Record,
    RecordDriver,
    RequestedEntry,
    ResolutionTier,
    SourceResolution,
)

__all__ = [
    "BackendError",
    "BackendFailureError",
    "BatchReconciler",
    "BatchResolutionResult",
    "BatchStatistics",
    "CachePolicy",
    "FallbackLoaderNotFoundError",
    "FallbackLoaderRegistry",
    "IdentifierList",
    "InvalidIdentifierError",
    "MISSING_KIND",
    "PositionClaimError",
    "Record",
    "RecordCache",
    "RecordDriver",
    "RecordFactory",
    "RecordLoader",
    "RecordLoaderConfig",
    "RecordLoaderError",
    "RecordLoaderFactory",
    "RecordNotFoundError",
    "RequestedEntry",
    "ResolutionCancelledError",
    "ResolutionContext",
    "ResolutionTier",
    "ResolutionTimeoutError",
    "SourceResolution",
]
