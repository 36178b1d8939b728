#!/usr/bin/env python3
"""
Create the products table (and optionally reset it).

Usage:
    python setup_database.py [--reset]
"""
import argparse
import asyncio

from storefront.database import AsyncSessionLocal, create_tables, drop_tables
from storefront.logger import setup_logger
from storefront.store import CatalogStore

logger = setup_logger()


async def setup(reset: bool) -> bool:
    store = CatalogStore(AsyncSessionLocal)

    if reset:
        logger.warning("Dropping all tables...")
        await drop_tables()
    elif await store.exists():
        logger.info("Products table already exists. Continuing...")

    logger.info("Creating products table...")
    await create_tables()

    if not await store.exists():
        logger.error("Products table is still not reachable, check DATABASE_URL")
        return False

    logger.info("Database setup complete!")
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Set up the catalog database")
    parser.add_argument("--reset", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()
    ok = asyncio.run(setup(args.reset))
    raise SystemExit(0 if ok else 1)


if __name__ == "__main__":
    main()
