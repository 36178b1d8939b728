"""
Client for the storefront HTTP API, with a per-category catalog cache.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from storefront.cache import CatalogCache
from storefront.schemas import CatalogResult, OrderRequest, OrderResponse, SyncReport

logger = logging.getLogger(__name__)


class StorefrontClient:
    """
    Consumer of ``/api/products-store`` and friends.

    Catalog pages are cached for ``freshness_window`` seconds per category;
    triggering a sync through this client drops the cached pages.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        freshness_window: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        cache: Optional[CatalogCache] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=30.0)
        self.cache = cache or CatalogCache(self._fetch_catalog, freshness_window=freshness_window)

    async def _fetch_catalog(self, category: Optional[str]) -> CatalogResult:
        params = {"category": category} if category else None
        response = await self.client.get("/api/products-store", params=params)
        response.raise_for_status()
        return CatalogResult.model_validate(response.json())

    async def get_catalog(self, category: Optional[str] = None) -> CatalogResult:
        """Catalog page for ``category`` (all categories when None), cached."""
        return await self.cache.get(category)

    async def refresh(self, category: Optional[str] = None) -> CatalogResult:
        """Bypass the cache for one category and store the fresh page."""
        self.cache.invalidate(category)
        return await self.cache.get(category)

    async def trigger_sync(self, api_key: str, category: Optional[str] = None) -> SyncReport:
        """Run an on-demand sync and forget every cached page."""
        params: Dict[str, Any] = {"key": api_key}
        if category:
            params["category"] = category
        response = await self.client.post("/api/sync-products", params=params)
        self.cache.invalidate_all()
        if response.status_code >= 500:
            # Failed runs still answer with a report body
            return SyncReport.model_validate(response.json())
        response.raise_for_status()
        return SyncReport.model_validate(response.json())

    async def submit_order(self, order: OrderRequest) -> OrderResponse:
        response = await self.client.post("/api/orders", json=order.model_dump())
        response.raise_for_status()
        return OrderResponse.model_validate(response.json())

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
