from __future__ import annotations

from typing import List, Optional

import pytest

from storefront.cache import CatalogCache
from storefront.schemas import CatalogResult

from conftest import item


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingLoader:
    def __init__(self) -> None:
        self.calls: List[Optional[str]] = []

    async def __call__(self, category: Optional[str]) -> CatalogResult:
        self.calls.append(category)
        return CatalogResult(
            items=[item(f"{category}-{len(self.calls)}")],
            categories=["X", "Y"],
            selected_category=category,
            origin="store",
        )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def loader() -> CountingLoader:
    return CountingLoader()


@pytest.fixture
def cache(loader, clock) -> CatalogCache:
    return CatalogCache(loader, freshness_window=300, clock=clock)


@pytest.mark.asyncio
async def test_entry_is_served_until_window_expires(cache, loader, clock) -> None:
    first = await cache.get("X")

    clock.now = 299
    assert await cache.get("X") is first
    assert loader.calls == ["X"]

    clock.now = 301
    refreshed = await cache.get("X")
    assert refreshed is not first
    assert loader.calls == ["X", "X"]


@pytest.mark.asyncio
async def test_categories_are_cached_independently(cache, loader) -> None:
    await cache.get("X")
    await cache.get("Y")
    await cache.get(None)
    await cache.get("X")

    assert loader.calls == ["X", "Y", None]


@pytest.mark.asyncio
async def test_invalidate_single_category(cache, loader) -> None:
    await cache.get("X")
    await cache.get("Y")

    cache.invalidate("X")
    await cache.get("X")
    await cache.get("Y")

    assert loader.calls == ["X", "Y", "X"]


@pytest.mark.asyncio
async def test_invalidate_all(cache, loader) -> None:
    await cache.get("X")
    await cache.get("Y")

    cache.invalidate_all()
    await cache.get("X")
    await cache.get("Y")

    assert loader.calls == ["X", "Y", "X", "Y"]


@pytest.mark.asyncio
async def test_membership_reflects_freshness(cache, clock) -> None:
    assert "X" not in cache
    await cache.get("X")
    assert "X" in cache

    clock.now = 300
    assert "X" not in cache


@pytest.mark.asyncio
async def test_loader_errors_are_not_cached(clock) -> None:
    calls = []

    async def flaky(category):
        calls.append(category)
        if len(calls) == 1:
            raise RuntimeError("read failed")
        return CatalogResult(origin="source")

    cache = CatalogCache(flaky, freshness_window=300, clock=clock)

    with pytest.raises(RuntimeError):
        await cache.get("X")
    result = await cache.get("X")

    assert result.origin == "source"
    assert calls == ["X", "X"]
