"""
Collaborator protocols consumed by the RecordLoader.

The loader never implements transport, storage or record schemas itself; it
talks to these interfaces. Reference implementations live in sibling modules
(``cache``, ``factory``, ``fallback``).
"""

from typing import Any, Iterable, Protocol, Sequence, runtime_checkable

from .types import Record


@runtime_checkable
class CachePolicyProtocol(Protocol):
    """Answers, per source, which cache tier the source uses."""

    def is_primary(self, source: str) -> bool:
        """Whether the cache is consulted before the search backend."""
        ...

    def is_fallback(self, source: str) -> bool:
        """Whether the cache is consulted after every other tier failed."""
        ...


@runtime_checkable
class RecordCacheProtocol(CachePolicyProtocol, Protocol):
    """Local record cache; absence of a record is not an error."""

    def lookup(self, record_id: str, source: str) -> Sequence[Record]:
        ...

    def lookup_batch(self, ids: Sequence[str], source: str) -> Sequence[Record]:
        ...

    def set_context(self, context: str) -> None:
        ...


@runtime_checkable
class SearchService(Protocol):
    """
    Remote search backend.

    Both calls return zero or more records and raise BackendError when the
    call itself fails.
    """

    def retrieve(self, source: str, record_id: str) -> Sequence[Record]:
        ...

    def retrieve_batch(self, source: str, ids: Sequence[str]) -> Sequence[Record]:
        ...


@runtime_checkable
class RecordFactoryProtocol(Protocol):
    """Creates empty record objects of a given kind."""

    def get(self, kind: str) -> Any:
        ...


@runtime_checkable
class FallbackLoader(Protocol):
    """
    Per-source loader for ids no other tier could resolve.

    Records may come back under a new canonical id; such records report the
    requested id through ``previous_unique_id()``.
    """

    def load(self, ids: Sequence[str]) -> Iterable[Record]:
        ...


@runtime_checkable
class FallbackLoaderRegistryProtocol(Protocol):
    """Lookup of fallback loaders by source."""

    def has(self, source: str) -> bool:
        ...

    def get(self, source: str) -> FallbackLoader:
        ...
