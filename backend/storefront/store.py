"""
Catalog store: the relational mirror of the spreadsheet catalog.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.config import settings
from storefront.errors import StoreUnavailable, StoreWriteFailed
from storefront.models import Product
from storefront.schemas import PersistedCatalogItem

logger = logging.getLogger(__name__)

# Columns an upsert must never overwrite on an existing row
PRESERVED_ON_UPDATE = ("id", "created_at", "custom_data")

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def dedupe_by_id(items: Iterable[PersistedCatalogItem]) -> List[PersistedCatalogItem]:
    """Keep the last occurrence of each id, in first-seen order."""
    unique: Dict[str, PersistedCatalogItem] = {}
    for item in items:
        unique[item.id] = item
    return list(unique.values())


class CatalogStore:
    """
    Persists ``PersistedCatalogItem`` records keyed by id.

    Every operation opens its own session from ``session_factory``.
    Reads raise ``StoreUnavailable`` and writes ``StoreWriteFailed``
    when the database errors; an empty table is a normal, empty result.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        batch_size: Optional[int] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.session_factory = session_factory
        self.batch_size = batch_size or settings.UPSERT_BATCH_SIZE
        self.clock = clock or _utcnow

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _select_items(self, stmt) -> List[PersistedCatalogItem]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return [PersistedCatalogItem.model_validate(row) for row in result.scalars().all()]
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[Store] Read failed: {e}")
            raise StoreUnavailable(f"Catalog store read failed: {e}") from e

    async def list_all(self) -> List[PersistedCatalogItem]:
        """Active items ordered by category, then name."""
        stmt = (
            select(Product)
            .where(Product.is_active.is_(True))
            .order_by(Product.category, Product.name)
        )
        return await self._select_items(stmt)

    async def list_by_category(self, category: str) -> List[PersistedCatalogItem]:
        """Active items of one category ordered by name."""
        stmt = (
            select(Product)
            .where(Product.category == category, Product.is_active.is_(True))
            .order_by(Product.name)
        )
        return await self._select_items(stmt)

    async def list_categories(self) -> List[str]:
        """Distinct categories among active items, sorted."""
        stmt = (
            select(Product.category)
            .where(Product.is_active.is_(True))
            .distinct()
            .order_by(Product.category)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[Store] Category read failed: {e}")
            raise StoreUnavailable(f"Catalog store read failed: {e}") from e

    async def list_ids_by_category(self, category: str) -> List[str]:
        """Ids of the active items in one category."""
        stmt = select(Product.id).where(
            Product.category == category, Product.is_active.is_(True)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable(f"Catalog store read failed: {e}") from e

    async def get(self, item_id: str) -> Optional[PersistedCatalogItem]:
        """Administrative lookup by id; inactive rows are returned too."""
        try:
            async with self.session_factory() as session:
                product = await session.get(Product, item_id)
                return PersistedCatalogItem.model_validate(product) if product else None
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable(f"Catalog store read failed: {e}") from e

    async def exists(self) -> bool:
        """Cheap probe that the products table is reachable."""
        try:
            async with self.session_factory() as session:
                await session.execute(select(Product.id).limit(1))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"[Store] Products table not reachable: {e}")
            return False

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _to_row(self, item: PersistedCatalogItem, now: datetime) -> Dict[str, Any]:
        row = item.model_dump()
        row["updated_at"] = now
        row["last_synced_at"] = now
        return row

    def _upsert_statement(self, session: AsyncSession, rows: Sequence[Dict[str, Any]]):
        dialect = session.bind.dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise StoreWriteFailed(f"Upsert is not supported on dialect '{dialect}'")

        stmt = insert(Product).values(list(rows))
        return stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                column.name: stmt.excluded[column.name]
                for column in Product.__table__.columns
                if column.name not in PRESERVED_ON_UPDATE
            },
        )

    async def upsert_batch(self, items: Sequence[PersistedCatalogItem]) -> int:
        """
        Insert new ids and overwrite existing ones (except ``created_at``
        and ``custom_data``).

        Duplicate ids in ``items`` are collapsed, last one wins. Rows are
        written in chunks of ``batch_size``, one transaction per chunk; the
        first failing chunk stops the batch.

        Returns:
            Number of unique items written.

        Raises:
            StoreWriteFailed: carrying the number of chunks already committed.
        """
        unique = dedupe_by_id(items)
        if not unique:
            return 0

        now = self.clock()
        rows = [self._to_row(item, now) for item in unique]
        chunks = [rows[i:i + self.batch_size] for i in range(0, len(rows), self.batch_size)]

        logger.info(f"[Store] Upserting {len(rows)} unique products in {len(chunks)} chunk(s)")

        committed = 0
        for number, chunk in enumerate(chunks, start=1):
            try:
                async with self.session_factory() as session:
                    await session.execute(self._upsert_statement(session, chunk))
                    await session.commit()
            except StoreWriteFailed as e:
                raise StoreWriteFailed(str(e), chunks_committed=committed) from e
            except (SQLAlchemyError, OSError) as e:
                logger.error(f"[Store] Chunk {number}/{len(chunks)} failed after {committed} committed: {e}")
                raise StoreWriteFailed(
                    f"Upsert chunk {number} of {len(chunks)} failed: {e}",
                    chunks_committed=committed,
                ) from e
            committed += 1
            logger.debug(f"[Store] Chunk {number}/{len(chunks)} committed ({len(chunk)} products)")

        return len(rows)

    async def deactivate(self, ids: Iterable[str]) -> int:
        """Soft-delete the given ids; unknown ids are ignored. Returns rows touched."""
        id_list = sorted(set(ids))
        if not id_list:
            return 0

        stmt = (
            update(Product)
            .where(Product.id.in_(id_list))
            .values(is_active=False, updated_at=self.clock())
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[Store] Deactivation of {len(id_list)} products failed: {e}")
            raise StoreWriteFailed(f"Deactivation failed: {e}") from e

        logger.info(f"[Store] Marked {result.rowcount} products as inactive")
        return result.rowcount

    async def delete(self, ids: Iterable[str]) -> int:
        """Hard-delete the given ids. Administrative use only."""
        id_list = sorted(set(ids))
        if not id_list:
            return 0

        try:
            async with self.session_factory() as session:
                result = await session.execute(delete(Product).where(Product.id.in_(id_list)))
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[Store] Deletion of {len(id_list)} products failed: {e}")
            raise StoreWriteFailed(f"Deletion failed: {e}") from e

        logger.info(f"[Store] Deleted {result.rowcount} products")
        return result.rowcount
