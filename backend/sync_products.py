#!/usr/bin/env python3
"""
Manually sync products from the spreadsheet into the catalog store.

Usage:
    python sync_products.py                     # every category
    python sync_products.py --category Laptops  # one category
    python sync_products.py --category Laptops --prune [--policy delete]
"""
import argparse
import asyncio
import sys

from storefront.database import AsyncSessionLocal, create_tables
from storefront.errors import CatalogError
from storefront.logger import setup_logger
from storefront.schemas import RemovalPolicy
from storefront.sheets import SheetsCatalogReader
from storefront.store import CatalogStore
from storefront.sync import SyncEngine

logger = setup_logger()


async def run(category: str | None, prune: bool, policy: RemovalPolicy) -> int:
    source = SheetsCatalogReader()
    engine = SyncEngine(source, CatalogStore(AsyncSessionLocal))
    try:
        await create_tables()

        if category:
            report = await engine.sync_category(category)
        else:
            report = await engine.sync_all()

        logger.info(f"Sync completed: {report.message}")
        for error in report.errors or []:
            logger.error(f"  [!] {error.category or '<discovery>'}: {error.error}")

        if prune and category:
            removal = await engine.handle_removed_products(category, policy=policy)
            logger.info(f"{removal.policy.value}: {len(removal.removed_ids)} products {removal.removed_ids}")

        return 0 if report.success else 1
    except CatalogError as e:
        logger.error(f"Error during sync: {e}")
        return 1
    finally:
        await source.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Sync the spreadsheet catalog into the store")
    parser.add_argument("--category", help="Sync only this sheet tab")
    parser.add_argument("--prune", action="store_true",
                        help="After syncing --category, handle items missing from the tab")
    parser.add_argument("--policy", choices=[p.value for p in RemovalPolicy],
                        default=RemovalPolicy.DEACTIVATE.value)
    args = parser.parse_args()

    if args.prune and not args.category:
        parser.error("--prune requires --category")

    sys.exit(asyncio.run(run(args.category, args.prune, RemovalPolicy(args.policy))))


if __name__ == "__main__":
    main()
