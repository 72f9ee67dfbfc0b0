"""Record factory: builds empty record objects by kind."""

from typing import Any, Callable, Dict, Optional

from .types import DEFAULT_KIND, MISSING_KIND, RecordDriver

RecordBuilder = Callable[[], Any]


class RecordFactory:
    """
    Creates fresh record objects for a kind name.

    Unregistered kinds produce a RecordDriver tagged with that kind, so
    ``get("missing")`` always yields a placeholder-capable record.

    Example:
        >>> record = RecordFactory().get("missing")
        >>> record.is_missing
        True
    """

    def __init__(self, builders: Optional[Dict[str, RecordBuilder]] = None) -> None:
        self._builders: Dict[str, RecordBuilder] = dict(builders or {})

    def register(self, kind: str, builder: RecordBuilder) -> None:
        self._builders[kind.lower()] = builder

    def get(self, kind: str = DEFAULT_KIND) -> Any:
        normalized = kind.lower()
        builder = self._builders.get(normalized)
        if builder is not None:
            return builder()
        return RecordDriver(kind=normalized)

    def build_missing(
        self, record_id: Optional[str], source: str, extra_fields: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Build a placeholder for an unresolved request."""
        fields = dict(extra_fields or {})
        fields["id"] = record_id
        record = self.get(MISSING_KIND)
        record.set_raw_data(fields)
        record.set_source_identifier(source)
        return record
