"""Shared fixtures: in-memory catalog store and a scriptable catalog source."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Union

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.errors import CategoryNotFound, SourceUnavailable
from storefront.models import Base
from storefront.schemas import CatalogItem
from storefront.sheets.base import BaseCatalogSource
from storefront.store import CatalogStore


class TickingClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start: Optional[datetime] = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current


class FakeSource(BaseCatalogSource):
    """Catalog source backed by a dict; values may be exceptions to raise."""

    def __init__(
        self,
        tabs: Optional[Dict[str, Union[List[CatalogItem], Exception]]] = None,
        list_error: Optional[Exception] = None,
    ) -> None:
        super().__init__("fake")
        self.tabs = tabs or {}
        self.list_error = list_error
        self.fetch_calls: List[str] = []

    async def list_categories(self) -> List[str]:
        if self.list_error:
            raise self.list_error
        return list(self.tabs)

    async def fetch_category(self, category: str) -> List[CatalogItem]:
        self.fetch_calls.append(category)
        if self.list_error and isinstance(self.list_error, SourceUnavailable):
            raise self.list_error
        if category not in self.tabs:
            raise CategoryNotFound(category)
        tab = self.tabs[category]
        if isinstance(tab, Exception):
            raise tab
        return list(tab)


def item(item_id: str, name: Optional[str] = None, price: float = 10.0, **extra) -> CatalogItem:
    return CatalogItem(id=item_id, name=name or f"Product {item_id}", price=price, original_price=price, **extra)


def naive(value: datetime) -> datetime:
    """SQLite hands datetimes back without tzinfo."""
    return value.replace(tzinfo=None)


async def _make_factory(create_schema: bool):
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    if create_schema:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session_factory():
    engine, factory = await _make_factory(create_schema=True)
    yield factory
    await engine.dispose()


@pytest.fixture
async def broken_session_factory():
    """Session factory over a database without the products table."""
    engine, factory = await _make_factory(create_schema=False)
    yield factory
    await engine.dispose()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store(session_factory, clock) -> CatalogStore:
    return CatalogStore(session_factory, batch_size=10, clock=clock)


@pytest.fixture
def broken_store(broken_session_factory) -> CatalogStore:
    return CatalogStore(broken_session_factory, batch_size=10)
