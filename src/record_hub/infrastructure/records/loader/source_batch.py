"""
Tiered lookup for a batch of ids belonging to one source.

Tier order:
1. Record cache (cache-primary sources)
2. Search backend
3. Fallback loader registered for the source
4. Record cache (cache-fallback sources)

Ids leave the working set as soon as a tier satisfies them, so no tier is
asked for an id an earlier tier already resolved. Tiers must run in this
order: each one only sees what the previous ones left over.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence

from record_hub.utils.logging import get_logger

from ..context import ResolutionContext
from ..exceptions import BackendError, BackendFailureError
from ..protocols import (
    FallbackLoaderRegistryProtocol,
    RecordCacheProtocol,
    SearchService,
)
from ..types import SourceResolution

logger = get_logger(__name__)

WorkingSet = Dict[str, None]


def _discard(remaining: WorkingSet, record_id: Optional[str]) -> None:
    if record_id:
        remaining.pop(record_id, None)


def _discard_resolved(remaining: WorkingSet, records: Iterable[Any]) -> None:
    for record in records:
        _discard(remaining, record.unique_id())


def retrieve_from_backend(
    search_service: SearchService,
    ids: Sequence[str],
    source: str,
    tolerate_backend_exceptions: bool,
    resolution: SourceResolution,
) -> List[Any]:
    """
    Batch-retrieve ids from the search backend.

    Raises:
        BackendFailureError: If the backend fails and failures are not tolerated.
    """
    try:
        return list(search_service.retrieve_batch(source, list(ids)))
    except BackendError as e:
        if not tolerate_backend_exceptions:
            raise BackendFailureError(source, e) from e
        logger.warning(
            "record_loader.backend_failure_tolerated",
            source=source,
            requested=len(ids),
            error_type=type(e).__name__,
            error=str(e),
        )
        resolution.backend_error = e
        return []


def load_via_fallback(
    fallback_loaders: FallbackLoaderRegistryProtocol,
    remaining: WorkingSet,
    source: str,
) -> List[Any]:
    """
    Run the source's fallback loader over the remaining ids.

    Every returned record is kept. Its own unique id and, for records resolved
    under a new canonical id, its previous unique id leave the working set.
    """
    loader = fallback_loaders.get(source)
    records: List[Any] = []
    for record in loader.load(list(remaining)):
        records.append(record)
        _discard(remaining, record.unique_id())
        _discard(remaining, record.previous_unique_id())
    return records


def resolve_source_batch(
    ids: Sequence[str],
    source: str,
    *,
    search_service: SearchService,
    record_cache: Optional[RecordCacheProtocol] = None,
    fallback_loaders: Optional[FallbackLoaderRegistryProtocol] = None,
    tolerate_backend_exceptions: bool = False,
    context: Optional[ResolutionContext] = None,
) -> SourceResolution:
    """
    Resolve a batch of ids for one source through every tier.

    Args:
        ids: Distinct ids requested under ``source``.
        source: Record source.
        search_service: Search backend.
        record_cache: Optional record cache (also answers the cache policy).
        fallback_loaders: Optional registry of per-source fallback loaders.
        tolerate_backend_exceptions: Log backend failures instead of raising.
        context: Optional deadline/cancellation checked before each tier.

    Returns:
        SourceResolution with the records found by each tier and the ids
        still unresolved.

    Raises:
        BackendFailureError: Backend failed and failures are not tolerated.
        ResolutionTimeoutError, ResolutionCancelledError: From ``context``.
    """
    resolution = SourceResolution(source=source, requested=list(ids))
    remaining: WorkingSet = dict.fromkeys(record_id for record_id in ids if record_id)
    log = logger.bind(source=source)

    def check() -> None:
        if context is not None:
            context.check(source)

    if remaining and record_cache is not None and record_cache.is_primary(source):
        check()
        resolution.cache_primary = list(record_cache.lookup_batch(list(remaining), source))
        _discard_resolved(remaining, resolution.cache_primary)
        log.debug("record_loader.cache_primary_complete", hits=len(resolution.cache_primary))

    if remaining:
        check()
        resolution.backend = retrieve_from_backend(
            search_service, list(remaining), source, tolerate_backend_exceptions, resolution
        )
        _discard_resolved(remaining, resolution.backend)
        log.debug("record_loader.backend_complete", hits=len(resolution.backend))

    if remaining and fallback_loaders is not None and fallback_loaders.has(source):
        check()
        resolution.fallback = load_via_fallback(fallback_loaders, remaining, source)
        log.debug("record_loader.fallback_complete", hits=len(resolution.fallback))

    if remaining and record_cache is not None and record_cache.is_fallback(source):
        check()
        resolution.cache_fallback = list(
            record_cache.lookup_batch(list(remaining), source)
        )
        _discard_resolved(remaining, resolution.cache_fallback)
        log.debug(
            "record_loader.cache_fallback_complete", hits=len(resolution.cache_fallback)
        )

    resolution.unresolved = list(remaining)
    return resolution
