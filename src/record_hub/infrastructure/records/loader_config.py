"""
Record loader configuration.

RecordLoaderConfig is the single place the RecordLoader reads its batch
behavior from: default source, backend-exception tolerance, concurrency and
deadline. Factories cover the usual initialization contexts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from record_hub.config.settings import Settings


@dataclass(frozen=True)
class RecordLoaderConfig:
    """
    Configuration for RecordLoader batch behavior.

    Attributes:
        default_source: Source for requests that do not name one.
        tolerate_backend_exceptions: Default tolerance used by load_batch()
            when the caller does not pass one.
        max_workers: Number of sources resolved concurrently. 1 resolves
            sources one after another.
        timeout_seconds: Deadline for a whole batch load; None disables it.

    Example:
        >>> config = RecordLoaderConfig(max_workers=4, timeout_seconds=10.0)
        >>> config.concurrent
        True
    """

    default_source: str = "Solr"
    tolerate_backend_exceptions: bool = False
    max_workers: int = 1
    timeout_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )

    @property
    def concurrent(self) -> bool:
        return self.max_workers > 1

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> RecordLoaderConfig:
        """
        Factory: Load config from settings (the global ones by default).

        Falls back to defaults (and logs why) when settings cannot be loaded.
        """
        try:
            if settings is None:
                from record_hub.config.settings import get_settings

                settings = get_settings()
            return cls(
                default_source=settings.default_source,
                tolerate_backend_exceptions=settings.tolerate_backend_exceptions,
                max_workers=settings.batch_max_workers,
                timeout_seconds=settings.batch_timeout_seconds,
            )
        except Exception as e:
            logging.getLogger(__name__).warning(
                "record_loader_config.from_settings_failed",
                extra={"error_type": type(e).__name__, "error": str(e)},
            )
            return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RecordLoaderConfig:
        """Factory: Deserialize config from a dictionary (see to_dict())."""
        return cls(
            default_source=data.get("default_source", "Solr"),
            tolerate_backend_exceptions=data.get("tolerate_backend_exceptions", False),
            max_workers=data.get("max_workers", 1),
            timeout_seconds=data.get("timeout_seconds"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_source": self.default_source,
            "tolerate_backend_exceptions": self.tolerate_backend_exceptions,
            "max_workers": self.max_workers,
            "timeout_seconds": self.timeout_seconds,
        }
