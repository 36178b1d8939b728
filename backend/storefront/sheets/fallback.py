"""
Static catalog shown when the spreadsheet cannot be reached.
"""
from typing import List

from storefront.schemas import CatalogItem, CatalogResult

FALLBACK_CATEGORIES: List[str] = ["Sheet1"]

FALLBACK_PRODUCTS: List[CatalogItem] = [
    CatalogItem(
        id="P001",
        name="Fallback Laptop",
        url="#",
        original_price=1299.99,
        price=999.99,
        stock_status="In Stock",
        description="High performance laptop",
    ),
    CatalogItem(
        id="P002",
        name="Fallback Smartphone",
        url="#",
        original_price=799.99,
        price=699.99,
        stock_status="In Stock",
        description="Latest smartphone",
    ),
]


def fallback_products() -> List[CatalogItem]:
    """Return copies of the fallback products."""
    return [item.model_copy() for item in FALLBACK_PRODUCTS]


def fallback_catalog(reason: str) -> CatalogResult:
    """Catalog page built from the static data, tagged with why it was used."""
    return CatalogResult(
        items=fallback_products(),
        categories=list(FALLBACK_CATEGORIES),
        selected_category=FALLBACK_CATEGORIES[0],
        origin="fallback",
        fallback_reason=reason,
    )
