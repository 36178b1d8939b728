"""
Column contract between a spreadsheet tab and ``CatalogItem``.

Rows are mapped by position. A column reorder in the sheet would silently
shift every field, so the header row is compared against the expected
labels and any mismatch is reported to the caller.
"""
import math
import re
from typing import Any, Dict, List, NamedTuple, Sequence, Tuple

from storefront.schemas import CatalogItem


class SheetColumn(NamedTuple):
    field: str
    label: str
    aliases: Tuple[str, ...] = ()
    numeric: bool = False


# Left-to-right order of columns A..H
SHEET_COLUMNS: Tuple[SheetColumn, ...] = (
    SheetColumn("id", "ID", ("productid", "sku")),
    SheetColumn("name", "Name", ("productname", "title")),
    SheetColumn("url", "URL", ("link", "producturl")),
    SheetColumn("image_url_1", "Image URL 1", ("imageurl", "image1")),
    SheetColumn("image_url_2", "Image URL 2", ("image2",)),
    SheetColumn("original_price", "Original Price", ("originalprice", "listprice", "msrp"), numeric=True),
    SheetColumn("price", "Price", ("saleprice", "currentprice"), numeric=True),
    SheetColumn("stock_status", "Stock Status", ("stock", "availability")),
)

LAST_COLUMN = chr(ord("A") + len(SHEET_COLUMNS) - 1)

_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

# Largest value a NUMERIC(12, 2) price column holds
MAX_PRICE = 9_999_999_999.99


def _normalize_label(value: Any) -> str:
    return re.sub(r"[^a-z0-9]", "", str(value or "").lower())


def parse_number(value: Any) -> float:
    """
    Coerce a sheet cell to a non-negative float.

    Thousands separators are dropped and the first number in the cell is
    used, so currency symbols and trailing words are ignored. Cells with no
    finite, non-negative number become 0; values above ``MAX_PRICE`` are
    capped.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        number = float(value)
    else:
        match = _NUMBER.search(str(value).replace(",", ""))
        if match is None:
            return 0.0
        number = float(match.group())
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return min(number, MAX_PRICE)


def _cell(row: Sequence[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def is_blank_row(row: Sequence[Any]) -> bool:
    return all(str(cell).strip() == "" for cell in row if cell is not None)


def row_to_item(row: Sequence[Any]) -> CatalogItem:
    """Map one sheet row to a ``CatalogItem`` using ``SHEET_COLUMNS``."""
    values: Dict[str, Any] = {}
    for index, column in enumerate(SHEET_COLUMNS):
        cell = _cell(row, index)
        if column.numeric:
            values[column.field] = parse_number(cell)
        else:
            values[column.field] = "" if cell is None else str(cell).strip()
    return CatalogItem(**values)


def validate_header(header: Sequence[Any]) -> List[str]:
    """
    Compare a header row with the expected column labels.

    Returns a list of human-readable mismatches; empty when the header
    matches (labels are compared case- and punctuation-insensitively).
    """
    mismatches: List[str] = []
    for index, column in enumerate(SHEET_COLUMNS):
        found = _normalize_label(_cell(header, index))
        accepted = {_normalize_label(column.label), _normalize_label(column.field)}
        accepted.update(column.aliases)
        if found not in accepted:
            letter = chr(ord("A") + index)
            actual = _cell(header, index)
            mismatches.append(
                f"column {letter}: expected '{column.label}', found '{actual if actual is not None else ''}'"
            )
    return mismatches
