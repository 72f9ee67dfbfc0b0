"""
Ordered list of requested record identifiers.

IdentifierList normalizes a heterogeneous batch request into dense
RequestedEntry slots, groups distinct ids by source for lookup, and maps
resolved records back to the slots they satisfy.

Accepted request elements:
- mapping: ``{"id": ..., "source": ..., "extra_fields": {...}}``
  (``source`` and ``extra_fields`` optional)
- tuple/list: ``(source, id)`` or ``(source, id, extra_fields)``
- string: ``"source|id"``; a string without ``|`` is an id under the
  default source
"""

from collections import deque
from typing import Any, Deque, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .exceptions import InvalidIdentifierError, PositionClaimError
from .types import Record, RequestedEntry

SOURCE_SEPARATOR = "|"

RequestKey = Tuple[str, str]


class IdentifierList:
    """
    Request table for one batch load.

    Duplicate requests for the same (source, id) are distinct slots. Each
    slot is claimed at most once, in request order.

    Example:
        >>> id_list = IdentifierList(["Solr|1", {"id": "2", "source": "Solr"}])
        >>> list(id_list.ids_by_source())
        [('Solr', ['1', '2'])]
    """

    def __init__(self, ids: Iterable[Any], default_source: str = "Solr") -> None:
        self.default_source = default_source
        self._entries: List[RequestedEntry] = [
            self._parse(position, item) for position, item in enumerate(ids)
        ]
        self._unclaimed: Dict[RequestKey, Deque[int]] = {}
        self._ids_by_source: Dict[str, Dict[str, None]] = {}
        for entry in self._entries:
            self._unclaimed.setdefault(entry.key, deque()).append(entry.position)
            bucket = self._ids_by_source.setdefault(entry.source, {})
            if entry.id:
                bucket[entry.id] = None

    def _parse(self, position: int, item: Any) -> RequestedEntry:
        extra_fields: Optional[Mapping[str, Any]] = None
        if isinstance(item, str):
            if SOURCE_SEPARATOR in item:
                source, record_id = item.split(SOURCE_SEPARATOR, 1)
                source = source or self.default_source
            else:
                source, record_id = self.default_source, item
        elif isinstance(item, Mapping):
            record_id = item.get("id")
            source = item.get("source") or self.default_source
            extra_fields = item.get("extra_fields")
        elif isinstance(item, (tuple, list)) and len(item) in (2, 3):
            source, record_id = item[0] or self.default_source, item[1]
            if len(item) == 3:
                extra_fields = item[2]
        else:
            raise InvalidIdentifierError(
                f"Unsupported record request at position {position}: {item!r}"
            )

        if extra_fields is not None and not isinstance(extra_fields, Mapping):
            raise InvalidIdentifierError(
                f"extra_fields must be a mapping at position {position}, "
                f"got {type(extra_fields).__name__}"
            )
        return RequestedEntry(
            position=position,
            source=str(source),
            id="" if record_id is None else str(record_id),
            extra_fields=dict(extra_fields or {}),
        )

    def __len__(self) -> int:
        return len(self._entries)

    def ids_by_source(self) -> Iterator[Tuple[str, List[str]]]:
        """
        Yield (source, distinct ids) in first-appearance order of the source.

        Empty ids are never looked up; a source whose requests all carry empty
        ids is still yielded, with an empty list.
        """
        for source, ids in self._ids_by_source.items():
            yield source, list(ids)

    def _unclaimed_key(
        self, source: str, record_id: Optional[str]
    ) -> Optional[RequestKey]:
        if not record_id:
            return None
        key = (source, record_id)
        return key if self._unclaimed.get(key) else None

    def claim(self, record: Record) -> Tuple[int, RequestKey]:
        """
        Claim the next unclaimed position the record satisfies.

        The record's own unique id is matched first; its previous unique id
        (rename/merge) is matched when the own id has no unclaimed slot.

        Returns:
            The claimed position and the request key it was claimed under.

        Raises:
            PositionClaimError: If no unclaimed position matches.
        """
        source = record.source_identifier()
        key = self._unclaimed_key(source, record.unique_id())
        if key is None:
            key = self._unclaimed_key(source, record.previous_unique_id())
        if key is None:
            raise PositionClaimError(
                source, record.unique_id(), record.previous_unique_id()
            )
        return self._unclaimed[key].popleft(), key

    def record_position(self, record: Record) -> int:
        """Claim the next unclaimed position the record satisfies (see claim())."""
        return self.claim(record)[0]

    def has_unclaimed(self, key: RequestKey) -> bool:
        """Whether a position requested under ``key`` is still unclaimed."""
        return bool(self._unclaimed.get(key))

    def claim_key(self, key: RequestKey) -> int:
        """
        Claim the next unclaimed position requested under ``key``.

        Raises:
            PositionClaimError: If every position for the key is claimed.
        """
        queue = self._unclaimed.get(key)
        if not queue:
            raise PositionClaimError(key[0], key[1])
        return queue.popleft()

    def all(self) -> List[RequestedEntry]:
        """Every requested entry, in position order."""
        return list(self._entries)
