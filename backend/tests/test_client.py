from __future__ import annotations

import json

import httpx
import pytest

from storefront.client import StorefrontClient
from storefront.schemas import CatalogItem, OrderLine, OrderRequest, PersistedCatalogItem

STORE_PAGE = {
    "items": [
        {
            "id": "P1",
            "name": "Laptop",
            "price": 900,
            "original_price": 1000,
            "category": "Laptops",
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2024-01-02T00:00:00Z",
            "last_synced_at": "2024-01-02T00:00:00Z",
        }
    ],
    "categories": ["Laptops", "Phones"],
    "selected_category": "Laptops",
    "origin": "store",
}


class FakeApi:
    def __init__(self) -> None:
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/products-store":
            return httpx.Response(200, json=STORE_PAGE)
        if path == "/api/sync-products":
            if request.url.params.get("category") == "broken":
                return httpx.Response(500, json={"success": False, "message": "Failed to sync products: boom"})
            return httpx.Response(
                200,
                json={"success": True, "message": "ok", "synced_categories": ["Laptops"], "total_synced": 1},
            )
        if path == "/api/orders":
            return httpx.Response(200, json={"success": True, "message_id": 5})
        return httpx.Response(404, json={"error": "Not found"})

    def catalog_calls(self) -> int:
        return sum(1 for r in self.requests if r.url.path == "/api/products-store")


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
async def client(api):
    http = httpx.AsyncClient(base_url="http://storefront.test", transport=httpx.MockTransport(api))
    client = StorefrontClient(base_url="http://storefront.test", freshness_window=300, client=http)
    yield client
    await client.close()


@pytest.mark.asyncio
async def test_catalog_is_parsed_and_cached(client: StorefrontClient, api: FakeApi) -> None:
    first = await client.get_catalog("Laptops")
    second = await client.get_catalog("Laptops")

    assert second is first
    assert api.catalog_calls() == 1
    assert isinstance(first.items[0], PersistedCatalogItem)
    assert first.items[0].description == "Laptop"
    assert api.requests[0].url.params["category"] == "Laptops"


@pytest.mark.asyncio
async def test_source_items_parse_as_plain_catalog_items() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"items": [{"id": "F1", "name": "Fallback"}], "origin": "fallback", "fallback_reason": "down"},
        )

    http = httpx.AsyncClient(base_url="http://storefront.test", transport=httpx.MockTransport(handler))
    client = StorefrontClient(base_url="http://storefront.test", client=http)

    result = await client.get_catalog()
    await client.close()

    assert result.origin == "fallback"
    assert type(result.items[0]) is CatalogItem


@pytest.mark.asyncio
async def test_refresh_bypasses_cache(client: StorefrontClient, api: FakeApi) -> None:
    await client.get_catalog("Laptops")
    await client.refresh("Laptops")
    await client.get_catalog("Laptops")

    assert api.catalog_calls() == 2


@pytest.mark.asyncio
async def test_trigger_sync_drops_cached_pages(client: StorefrontClient, api: FakeApi) -> None:
    await client.get_catalog("Laptops")
    await client.get_catalog()

    report = await client.trigger_sync("secret", category="Laptops")
    await client.get_catalog("Laptops")
    await client.get_catalog()

    assert report.success is True
    assert report.total_synced == 1
    assert api.catalog_calls() == 4
    sync_request = next(r for r in api.requests if r.url.path == "/api/sync-products")
    assert sync_request.method == "POST"
    assert sync_request.url.params["key"] == "secret"


@pytest.mark.asyncio
async def test_failed_sync_returns_report(client: StorefrontClient) -> None:
    report = await client.trigger_sync("secret", category="broken")

    assert report.success is False
    assert "boom" in report.message


@pytest.mark.asyncio
async def test_submit_order(client: StorefrontClient, api: FakeApi) -> None:
    order = OrderRequest(
        cart=[OrderLine(id="P1", name="Laptop", price=900, quantity=1)],
        total=900,
        phone_number="+100",
        email="a@b.c",
    )

    response = await client.submit_order(order)

    assert response.success is True
    assert response.message_id == 5
    body = json.loads(api.requests[-1].content)
    assert body["cart"][0]["id"] == "P1"
