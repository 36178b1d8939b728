"""
Catalog sync: spreadsheet tabs -> catalog store.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from storefront.errors import StoreWriteFailed, SyncInProgress
from storefront.schemas import (
    CatalogItem,
    PersistedCatalogItem,
    RemovalPolicy,
    RemovalReport,
    SyncError,
    SyncReport,
    SyncState,
    SyncStatus,
)
from storefront.sheets.base import BaseCatalogSource
from storefront.store import CatalogStore

logger = logging.getLogger(__name__)

SYNC_SOURCE = "external_sheet"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_persisted(
    item: CatalogItem, category: str, now: datetime, sync_source: str = SYNC_SOURCE
) -> PersistedCatalogItem:
    """Stamp a source item with its category and sync bookkeeping."""
    return PersistedCatalogItem(
        **item.model_dump(),
        category=category,
        created_at=now,
        updated_at=now,
        last_synced_at=now,
        is_active=True,
        sync_source=sync_source,
    )


class SyncEngine:
    """
    Pulls every category from a catalog source into the catalog store.

    Categories are synced one after another; a failing category is
    recorded in the report and does not stop the others. Only one run
    (``sync_all`` or ``sync_category``) may be in flight per engine.
    """

    def __init__(
        self,
        source: BaseCatalogSource,
        store: CatalogStore,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.source = source
        self.store = store
        self.clock = clock or _utcnow
        self.state = SyncState.IDLE
        self.last_report: Optional[SyncReport] = None
        self._lock = asyncio.Lock()

    def status(self) -> SyncStatus:
        return SyncStatus(state=self.state, last_report=self.last_report)

    def _claim(self) -> None:
        if self._lock.locked():
            raise SyncInProgress("A catalog sync is already running")

    def _finish(self, report: SyncReport, state: SyncState) -> SyncReport:
        self.state = state
        self.last_report = report
        return report

    async def sync_all(self) -> SyncReport:
        """
        Sync every category the source lists.

        Flow:
        1. Discover categories (failure here fails the whole run)
        2. Sync each category, collecting per-category errors
        3. Aggregate counts into one report

        Raises:
            SyncInProgress: if another run holds the sync lock.
        """
        self._claim()
        async with self._lock:
            self.state = SyncState.RUNNING
            logger.info("[Sync] Starting full catalog sync")

            try:
                categories = await self.source.list_categories()
            except Exception as e:
                logger.error(f"[Sync] Category discovery failed: {e}")
                report = SyncReport(
                    success=False,
                    message=f"Failed to sync products: {e}",
                    errors=[SyncError(category=None, error=str(e))],
                )
                return self._finish(report, SyncState.FAILED)

            total_synced = 0
            synced_categories: List[str] = []
            errors: List[SyncError] = []

            for category in categories:
                try:
                    result = await self._sync_category(category)
                except Exception as e:
                    logger.error(f"[Sync] Error syncing category {category}: {e}")
                    errors.append(
                        SyncError(
                            category=category,
                            error=str(e),
                            chunks_committed=e.chunks_committed if isinstance(e, StoreWriteFailed) else None,
                        )
                    )
                    continue
                total_synced += result.total_synced
                synced_categories.append(category)

            if errors:
                report = SyncReport(
                    success=False,
                    message=f"Synced with some errors: {len(errors)} categories failed",
                    synced_categories=synced_categories,
                    total_synced=total_synced,
                    errors=errors,
                )
                state = SyncState.COMPLETED_WITH_ERRORS
            else:
                report = SyncReport(
                    success=True,
                    message=f"Successfully synced {total_synced} products from {len(categories)} categories",
                    synced_categories=synced_categories,
                    total_synced=total_synced,
                )
                state = SyncState.COMPLETED

            logger.info(f"[Sync] {report.message}")
            return self._finish(report, state)

    async def sync_category(self, category: str) -> SyncReport:
        """
        Sync a single category.

        Source and store errors propagate to the caller.

        Raises:
            SyncInProgress: if another run holds the sync lock.
        """
        self._claim()
        async with self._lock:
            self.state = SyncState.RUNNING
            try:
                report = await self._sync_category(category)
            except Exception:
                self.state = SyncState.FAILED
                raise
            return self._finish(report, SyncState.COMPLETED)

    async def _sync_category(self, category: str) -> SyncReport:
        logger.info(f"[Sync] Starting sync for category: {category}")

        items = await self.source.fetch_category(category)
        if not items:
            return SyncReport(
                success=True,
                message=f"No products found in source for category: {category}",
                synced_categories=[category],
                total_synced=0,
            )

        now = self.clock()
        persisted = {item.id: to_persisted(item, category, now) for item in items}
        written = await self.store.upsert_batch(list(persisted.values()))

        logger.info(f"[Sync] Synced {written} products for category: {category}")
        return SyncReport(
            success=True,
            message=f"Successfully synced {written} products for category: {category}",
            synced_categories=[category],
            total_synced=written,
        )

    async def handle_removed_products(
        self,
        category: str,
        source_ids: Optional[Iterable[str]] = None,
        policy: RemovalPolicy = RemovalPolicy.DEACTIVATE,
    ) -> RemovalReport:
        """
        Deactivate (or delete) store items of ``category`` that the source no longer lists.

        Never called by routine syncs. When ``source_ids`` is omitted the
        category is fetched fresh from the source.
        """
        self._claim()
        async with self._lock:
            if source_ids is None:
                source_ids = [item.id for item in await self.source.fetch_category(category)]

            current = set(source_ids)
            stored = await self.store.list_ids_by_category(category)
            removed = sorted(item_id for item_id in stored if item_id not in current)

            if removed:
                if policy == RemovalPolicy.DELETE:
                    await self.store.delete(removed)
                else:
                    await self.store.deactivate(removed)

        logger.info(f"[Sync] {policy.value}: {len(removed)} products missing from category {category}")
        return RemovalReport(category=category, policy=policy, removed_ids=removed)
