"""
Catalog read path: store first, spreadsheet as fallback.
"""

import logging
from typing import Optional

from storefront.errors import ReadUnavailable
from storefront.schemas import CatalogResult
from storefront.sheets.base import BaseCatalogSource
from storefront.store import CatalogStore

logger = logging.getLogger(__name__)


class CatalogReadService:
    """Serves catalog pages to the storefront."""

    def __init__(self, store: CatalogStore, source: BaseCatalogSource) -> None:
        self.store = store
        self.source = source

    async def get_catalog(self, category: Optional[str] = None) -> CatalogResult:
        """
        Read one catalog page.

        Flow:
        1. Read categories and items from the store (origin "store")
        2. On any store failure, read them from the source instead
           (origin "source", with the store failure as ``fallback_reason``)
        3. If the source fails too, raise ``ReadUnavailable``

        An empty store is a valid result and does not trigger the fallback.
        """
        try:
            return await self._from_store(category)
        except Exception as store_error:
            logger.warning(f"[Read] Store read failed, falling back to source: {store_error}")
            reason = str(store_error) or type(store_error).__name__

        try:
            return await self._from_source(category, reason)
        except Exception as source_error:
            logger.error(f"[Read] Source fallback failed: {source_error}")
            raise ReadUnavailable(
                f"Catalog unavailable: store failed ({reason}); source failed ({source_error})",
                store_error=reason,
            ) from source_error

    async def _from_store(self, category: Optional[str]) -> CatalogResult:
        categories = await self.store.list_categories()
        if category:
            items = await self.store.list_by_category(category)
        else:
            items = await self.store.list_all()

        return CatalogResult(
            items=items,
            categories=categories,
            selected_category=category or (categories[0] if categories else None),
            origin="store",
        )

    async def _from_source(self, category: Optional[str], reason: str) -> CatalogResult:
        categories = await self.source.list_categories()
        selected = category or (categories[0] if categories else None)
        items = await self.source.fetch_category(selected) if selected else []

        return CatalogResult(
            items=items,
            categories=categories,
            selected_category=selected,
            origin="source",
            fallback_reason=reason,
        )
