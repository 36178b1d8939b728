"""
Consumer-side, time-boxed cache of catalog pages keyed by category.
"""
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from storefront.config import settings
from storefront.schemas import CatalogResult

CatalogLoader = Callable[[Optional[str]], Awaitable[CatalogResult]]


@dataclass
class CacheEntry:
    result: CatalogResult
    fetched_at: float


class CatalogCache:
    """
    Advisory in-memory cache in front of a catalog loader.

    A page younger than ``freshness_window`` seconds is served as the same
    object; anything older (or invalidated) is reloaded and replaced.
    ``None`` is the key for the all-categories page.
    """

    def __init__(
        self,
        loader: CatalogLoader,
        freshness_window: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.loader = loader
        self.freshness_window = (
            settings.CATALOG_CACHE_SECONDS if freshness_window is None else freshness_window
        )
        self.clock = clock
        self._entries: Dict[Optional[str], CacheEntry] = {}

    def _fresh(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.fetched_at < self.freshness_window

    async def get(self, category: Optional[str] = None) -> CatalogResult:
        entry = self._entries.get(category)
        if entry is not None and self._fresh(entry):
            return entry.result

        result = await self.loader(category)
        self._entries[category] = CacheEntry(result=result, fetched_at=self.clock())
        return result

    def invalidate(self, category: Optional[str] = None) -> None:
        """Drop the entry for one category (``None`` is the all-categories page)."""
        self._entries.pop(category, None)

    def invalidate_all(self) -> None:
        self._entries.clear()

    def __contains__(self, category: Optional[str]) -> bool:
        entry = self._entries.get(category)
        return entry is not None and self._fresh(entry)
