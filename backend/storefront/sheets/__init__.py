"""
Readers for the spreadsheet that is the catalog's source of truth.
"""
from storefront.sheets.base import BaseCatalogSource
from storefront.sheets.client import SheetsCatalogReader
from storefront.sheets.columns import SHEET_COLUMNS, row_to_item, validate_header

__all__ = [
    'BaseCatalogSource',
    'SheetsCatalogReader',
    'SHEET_COLUMNS',
    'row_to_item',
    'validate_header',
]
