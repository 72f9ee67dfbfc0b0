"""Registry of per-source fallback loaders."""

from typing import Dict, List, Optional

from .exceptions import FallbackLoaderNotFoundError
from .protocols import FallbackLoader


class FallbackLoaderRegistry:
    """
    Maps source names to fallback loaders.

    Example:
        >>> registry = FallbackLoaderRegistry()
        >>> registry.has("Summon")
        False
    """

    def __init__(self, loaders: Optional[Dict[str, FallbackLoader]] = None) -> None:
        self._loaders: Dict[str, FallbackLoader] = dict(loaders or {})

    def register(self, source: str, loader: FallbackLoader) -> None:
        self._loaders[source] = loader

    def has(self, source: str) -> bool:
        return source in self._loaders

    def get(self, source: str) -> FallbackLoader:
        try:
            return self._loaders[source]
        except KeyError:
            raise FallbackLoaderNotFoundError(source) from None

    def sources(self) -> List[str]:
        return list(self._loaders)
