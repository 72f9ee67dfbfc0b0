"""
Core RecordLoader class.

This module contains the RecordLoader with the single-record ``load`` path and
the batch entry points. The per-source tier logic lives in ``source_batch``
and result ordering in ``reconciler``.
"""

from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Any, Dict, Iterable, List, Optional, Sequence

from record_hub.utils.logging import get_logger

from ..context import ResolutionContext
from ..exceptions import RecordNotFoundError, ResolutionTimeoutError
from ..factory import RecordFactory
from ..id_list import IdentifierList
from ..loader_config import RecordLoaderConfig
from ..protocols import (
    FallbackLoaderRegistryProtocol,
    RecordCacheProtocol,
    SearchService,
)
from ..types import BatchResolutionResult, BatchStatistics, SourceResolution
from .reconciler import BatchReconciler
from .source_batch import resolve_source_batch

logger = get_logger(__name__)


class RecordLoader:
    """
    Loads record objects from the record cache, search backend and fallback
    loaders.

    Lookup order for a source:

    1. Record cache, when the source is cache-primary
    2. Search backend
    3. Fallback loader registered for the source (batch loads only)
    4. Record cache, when the source is cache-fallback

    Attributes:
        search_service: Search backend.
        record_factory: Builds placeholder records.
        record_cache: Optional record cache; also answers the cache policy.
        fallback_loaders: Optional registry of per-source fallback loaders.
        config: Batch behavior (default source, tolerance, concurrency, timeout).

    Example:
        >>> loader = RecordLoader(search_service, RecordFactory(), record_cache=cache)
        >>> records = loader.load_batch(["Solr|1", "Solr|2"])
        >>> [record.unique_id() for record in records]
        ['1', '2']
    """

    def __init__(
        self,
        search_service: SearchService,
        record_factory: Optional[RecordFactory] = None,
        record_cache: Optional[RecordCacheProtocol] = None,
        fallback_loaders: Optional[FallbackLoaderRegistryProtocol] = None,
        config: Optional[RecordLoaderConfig] = None,
    ) -> None:
        self.search_service = search_service
        self.record_factory = record_factory or RecordFactory()
        self.record_cache = record_cache
        self.fallback_loaders = fallback_loaders
        self.config = config or RecordLoaderConfig()

    def load(
        self,
        record_id: Optional[str],
        source: Optional[str] = None,
        tolerate_missing: bool = False,
    ) -> Any:
        """
        Load a single record.

        The first tier that returns anything wins; fallback loaders are not
        consulted on this path, and backend errors always propagate.

        Args:
            record_id: Record ID; empty or None skips every tier.
            source: Record source (defaults to the configured default source).
            tolerate_missing: Return a placeholder instead of raising when the
                record cannot be found.

        Returns:
            The resolved record, or a placeholder when tolerated.

        Raises:
            RecordNotFoundError: No tier found the record and missing records
                are not tolerated.
        """
        source = source or self.config.default_source
        if record_id is not None and record_id != "":
            results: Sequence[Any] = []
            if self.record_cache is not None and self.record_cache.is_primary(source):
                results = self.record_cache.lookup(record_id, source)
            if not results:
                results = self.search_service.retrieve(source, record_id)
            if (
                not results
                and self.record_cache is not None
                and self.record_cache.is_fallback(source)
            ):
                results = self.record_cache.lookup(record_id, source)

            if results:
                return results[0]

        if tolerate_missing:
            logger.debug(
                "record_loader.missing_record_tolerated",
                source=source,
                record_id=record_id,
            )
            return self.record_factory.build_missing(record_id, source)
        raise RecordNotFoundError(source, record_id)

    def load_batch_for_source(
        self,
        ids: Sequence[str],
        source: Optional[str] = None,
        tolerate_backend_exceptions: bool = False,
    ) -> List[Any]:
        """
        Load a batch of records for one source.

        Records come back in tier discovery order (cache-primary, backend,
        fallback loader, cache-fallback), not in requested order.

        Raises:
            BackendFailureError: Backend failed and failures are not tolerated.
        """
        return self._resolve_source(
            ids, source or self.config.default_source, tolerate_backend_exceptions, None
        ).records

    def _resolve_source(
        self,
        ids: Sequence[str],
        source: str,
        tolerate_backend_exceptions: bool,
        context: Optional[ResolutionContext],
    ) -> SourceResolution:
        return resolve_source_batch(
            ids,
            source,
            search_service=self.search_service,
            record_cache=self.record_cache,
            fallback_loaders=self.fallback_loaders,
            tolerate_backend_exceptions=tolerate_backend_exceptions,
            context=context,
        )

    def load_batch(
        self,
        ids: Iterable[Any],
        tolerate_backend_exceptions: Optional[bool] = None,
        context: Optional[ResolutionContext] = None,
    ) -> List[Any]:
        """
        Load records for a list of requests, in requested order.

        Args:
            ids: Request elements: ``{"id", "source", "extra_fields"}`` mappings,
                ``(source, id[, extra_fields])`` tuples or ``"source|id"``
                strings. ``extra_fields`` seed the placeholder built when the
                record cannot be loaded.
            tolerate_backend_exceptions: Log backend failures and continue with
                the remaining tiers instead of raising. Defaults to the
                configured value.
            context: Optional deadline/cancellation; defaults to one built from
                the configured timeout.

        Returns:
            One record per request (placeholders for unresolved requests).
        """
        return self.resolve_batch(ids, tolerate_backend_exceptions, context).records

    def resolve_batch(
        self,
        ids: Iterable[Any],
        tolerate_backend_exceptions: Optional[bool] = None,
        context: Optional[ResolutionContext] = None,
    ) -> BatchResolutionResult:
        """
        Same as load_batch(), also returning batch statistics.

        Raises:
            BackendFailureError: Backend failed and failures are not tolerated;
                sources not yet resolved are abandoned.
            ResolutionTimeoutError, ResolutionCancelledError: From ``context``.
        """
        if tolerate_backend_exceptions is None:
            tolerate_backend_exceptions = self.config.tolerate_backend_exceptions
        if context is None:
            context = ResolutionContext(self.config.timeout_seconds)

        id_list = IdentifierList(ids, default_source=self.config.default_source)
        buckets = {source: source_ids for source, source_ids in id_list.ids_by_source()}
        statistics = BatchStatistics(
            total_requested=len(id_list),
            distinct_lookups=sum(len(source_ids) for source_ids in buckets.values()),
        )
        reconciler = BatchReconciler(id_list, self.record_factory, statistics)

        if self.config.concurrent and len(buckets) > 1:
            resolutions = self._resolve_concurrently(
                buckets, tolerate_backend_exceptions, context
            )
        else:
            resolutions = {}
            for source, source_ids in buckets.items():
                context.check(source)
                resolutions[source] = self._resolve_source(
                    source_ids, source, tolerate_backend_exceptions, context
                )

        # Merge in first-appearance order of the sources
        for source in buckets:
            resolution = resolutions[source]
            statistics.add_source(resolution)
            reconciler.place(resolution.records)

        records = reconciler.finalize()
        logger.info("record_loader.batch_complete", **statistics.to_dict())
        return BatchResolutionResult(records=records, statistics=statistics)

    def _resolve_concurrently(
        self,
        buckets: Dict[str, List[str]],
        tolerate_backend_exceptions: bool,
        context: ResolutionContext,
    ) -> Dict[str, SourceResolution]:
        """
        Resolve each source on a worker thread.

        The first failure cancels the context and every pending source, then
        propagates.
        """
        executor = ThreadPoolExecutor(
            max_workers=min(self.config.max_workers, len(buckets)),
            thread_name_prefix="record-loader",
        )
        futures: Dict[Future, str] = {}
        try:
            for source, source_ids in buckets.items():
                future = executor.submit(
                    self._resolve_source,
                    source_ids,
                    source,
                    tolerate_backend_exceptions,
                    context,
                )
                futures[future] = source

            done, pending = wait(
                futures, timeout=context.remaining(), return_when=FIRST_EXCEPTION
            )
            for future in done:
                error = future.exception()
                if error is not None:
                    context.cancel()
                    logger.warning(
                        "record_loader.source_failed",
                        source=futures[future],
                        error_type=type(error).__name__,
                        error=str(error),
                    )
                    raise error
            if pending:
                context.cancel()
                raise ResolutionTimeoutError(
                    context.timeout, [futures[future] for future in pending]
                )
            return {futures[future]: future.result() for future in done}
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def set_cache_context(self, context: str) -> None:
        """
        Set the context that controls cache behavior.

        No-op when no record cache is configured.
        """
        if self.record_cache is not None:
            self.record_cache.set_context(context)
