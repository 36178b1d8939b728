from __future__ import annotations

import pytest

from storefront.errors import CategoryNotFound, SourceUnavailable, StoreWriteFailed, SyncInProgress
from storefront.schemas import RemovalPolicy, SyncState
from storefront.store import CatalogStore
from storefront.sync import SyncEngine

from conftest import FakeSource, item


@pytest.mark.asyncio
async def test_sync_all_persists_every_category(store: CatalogStore) -> None:
    source = FakeSource({"A": [item("A1"), item("A2")], "B": [item("B1")]})
    engine = SyncEngine(source, store)

    report = await engine.sync_all()

    assert report.success is True
    assert report.synced_categories == ["A", "B"]
    assert report.total_synced == 3
    assert report.errors is None
    assert engine.state == SyncState.COMPLETED
    assert await store.list_categories() == ["A", "B"]
    row = await store.get("B1")
    assert row.category == "B"
    assert row.sync_source == "external_sheet"
    assert row.is_active is True


@pytest.mark.asyncio
async def test_failing_category_does_not_block_others(store: CatalogStore) -> None:
    source = FakeSource({"A": [item("A1")], "B": SourceUnavailable("tab read timed out"), "C": [item("C1")]})
    engine = SyncEngine(source, store)

    report = await engine.sync_all()

    assert report.success is False
    assert report.synced_categories == ["A", "C"]
    assert report.total_synced == 2
    assert len(report.errors) == 1
    assert report.errors[0].category == "B"
    assert "timed out" in report.errors[0].error
    assert engine.state == SyncState.COMPLETED_WITH_ERRORS
    assert await store.get("A1") is not None
    assert await store.get("C1") is not None


@pytest.mark.asyncio
async def test_store_write_failure_is_recorded_with_committed_chunks(store: CatalogStore, monkeypatch) -> None:
    source = FakeSource({"A": [item("A1")], "B": [item("B1")]})
    engine = SyncEngine(source, store)
    original = store.upsert_batch

    async def failing_for_b(items):
        if items[0].category == "B":
            raise StoreWriteFailed("disk full", chunks_committed=0)
        return await original(items)

    monkeypatch.setattr(store, "upsert_batch", failing_for_b)

    report = await engine.sync_all()

    assert report.synced_categories == ["A"]
    assert report.errors[0].category == "B"
    assert report.errors[0].chunks_committed == 0


@pytest.mark.asyncio
async def test_category_discovery_failure_fails_the_run(store: CatalogStore) -> None:
    source = FakeSource(list_error=SourceUnavailable("auth failed"))
    engine = SyncEngine(source, store)

    report = await engine.sync_all()

    assert report.success is False
    assert report.synced_categories == []
    assert report.total_synced == 0
    assert report.errors[0].category is None
    assert source.fetch_calls == []
    assert engine.state == SyncState.FAILED


@pytest.mark.asyncio
async def test_empty_category_is_a_successful_zero_sync(store: CatalogStore) -> None:
    engine = SyncEngine(FakeSource({"empty": []}), store)

    report = await engine.sync_category("empty")

    assert report.success is True
    assert report.total_synced == 0
    assert report.synced_categories == ["empty"]


@pytest.mark.asyncio
async def test_duplicate_source_ids_last_occurrence_wins(store: CatalogStore) -> None:
    source = FakeSource({"A": [item("P1", price=10), item("P2"), item("P1", price=20)]})
    engine = SyncEngine(source, store)

    report = await engine.sync_category("A")

    assert report.total_synced == 2
    assert (await store.get("P1")).price == 20


@pytest.mark.asyncio
async def test_sync_category_propagates_errors(store: CatalogStore) -> None:
    engine = SyncEngine(FakeSource({"A": [item("A1")]}), store)

    with pytest.raises(CategoryNotFound):
        await engine.sync_category("missing")
    assert engine.state == SyncState.FAILED


@pytest.mark.asyncio
async def test_overlapping_runs_are_rejected(store: CatalogStore) -> None:
    engine = SyncEngine(FakeSource({"A": [item("A1")]}), store)

    async with engine._lock:
        with pytest.raises(SyncInProgress):
            await engine.sync_all()
        with pytest.raises(SyncInProgress):
            await engine.sync_category("A")

    assert (await engine.sync_all()).success is True


@pytest.mark.asyncio
async def test_routine_sync_does_not_deactivate_missing_items(store: CatalogStore) -> None:
    source = FakeSource({"A": [item("A1"), item("A2")]})
    engine = SyncEngine(source, store)
    await engine.sync_all()

    source.tabs["A"] = [item("A1")]
    await engine.sync_all()

    assert (await store.get("A2")).is_active is True


@pytest.mark.asyncio
async def test_handle_removed_products_deactivates_by_default(store: CatalogStore) -> None:
    source = FakeSource({"A": [item("A1"), item("A2"), item("A3")], "B": [item("B1")]})
    engine = SyncEngine(source, store)
    await engine.sync_all()

    source.tabs["A"] = [item("A1")]
    report = await engine.handle_removed_products("A")

    assert report.policy == RemovalPolicy.DEACTIVATE
    assert report.removed_ids == ["A2", "A3"]
    assert [r.id for r in await store.list_by_category("A")] == ["A1"]
    assert (await store.get("A2")).is_active is False
    assert (await store.get("B1")).is_active is True


@pytest.mark.asyncio
async def test_handle_removed_products_delete_policy_with_given_ids(store: CatalogStore) -> None:
    engine = SyncEngine(FakeSource({"A": [item("A1"), item("A2")]}), store)
    await engine.sync_all()

    report = await engine.handle_removed_products("A", source_ids=["A2"], policy=RemovalPolicy.DELETE)

    assert report.removed_ids == ["A1"]
    assert await store.get("A1") is None


@pytest.mark.asyncio
async def test_status_reports_last_run(store: CatalogStore) -> None:
    engine = SyncEngine(FakeSource({"A": [item("A1")]}), store)
    assert engine.status().state == SyncState.IDLE
    assert engine.status().last_report is None

    await engine.sync_all()

    status = engine.status()
    assert status.state == SyncState.COMPLETED
    assert status.last_report.total_synced == 1
