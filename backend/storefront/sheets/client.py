"""
Google Sheets reader.

Each tab of the spreadsheet is one catalog category; rows below the
header are products laid out as described in ``sheets.columns``.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlparse

import httpx

from storefront.config import settings
from storefront.errors import CategoryNotFound, SourceUnavailable
from storefront.rate_limiter import HostRateLimiter, rate_limiter
from storefront.schemas import CatalogItem
from storefront.sheets.base import BaseCatalogSource
from storefront.sheets.columns import LAST_COLUMN, is_blank_row, row_to_item, validate_header

logger = logging.getLogger(__name__)


class SheetsCatalogReader(BaseCatalogSource):
    """
    Reads categories and product rows through the Sheets v4 REST API.

    Authenticates with an API key (public sheets) or a pre-issued OAuth
    bearer token. Every failure to reach or authenticate against the API
    is raised as ``SourceUnavailable``.
    """

    def __init__(
        self,
        sheet_id: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        header_rows: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
        limiter: Optional[HostRateLimiter] = None,
    ) -> None:
        super().__init__("sheets")
        self.sheet_id = sheet_id if sheet_id is not None else settings.GOOGLE_SHEET_ID
        self.api_key = api_key if api_key is not None else settings.GOOGLE_API_KEY
        self.access_token = access_token if access_token is not None else settings.GOOGLE_ACCESS_TOKEN
        self.base_url = (base_url or settings.SHEETS_API_BASE_URL).rstrip("/")
        self.header_rows = settings.SHEET_HEADER_ROWS if header_rows is None else header_rows
        self.client = client or httpx.AsyncClient(timeout=settings.SHEETS_TIMEOUT)
        self.limiter = limiter or rate_limiter.get_limiter(urlparse(self.base_url).netloc)

    def _auth(self) -> tuple[Dict[str, str], Dict[str, str]]:
        params: Dict[str, str] = {}
        headers: Dict[str, str] = {}
        if self.api_key:
            params["key"] = self.api_key
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return params, headers

    async def _get(self, url: str, params: Optional[Dict[str, str]] = None) -> httpx.Response:
        if not self.sheet_id:
            raise SourceUnavailable("Spreadsheet id is not configured (GOOGLE_SHEET_ID)")

        auth_params, headers = self._auth()
        query = {**(params or {}), **auth_params}

        async with self.limiter:
            try:
                return await self.client.get(url, params=query, headers=headers)
            except httpx.TimeoutException as e:
                raise SourceUnavailable(f"Timeout calling Sheets API: {e}") from e
            except httpx.HTTPError as e:
                raise SourceUnavailable(f"Error calling Sheets API: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json().get("error", {}).get("message", "") or response.text
        except ValueError:
            return response.text

    async def list_categories(self) -> List[str]:
        """Return tab titles in sheet order."""
        url = f"{self.base_url}/{self.sheet_id}"
        response = await self._get(url, params={"fields": "sheets.properties.title"})

        if response.status_code != 200:
            message = self._error_message(response)
            logger.error(f"[Sheets] HTTP {response.status_code} listing tabs: {message}")
            raise SourceUnavailable(f"Sheets API returned {response.status_code}: {message}")

        data: Dict[str, Any] = response.json()
        titles = [
            sheet.get("properties", {}).get("title", "")
            for sheet in data.get("sheets", [])
        ]
        return [title for title in titles if title]

    def _range_for(self, category: str) -> str:
        escaped = category.replace("'", "''")
        return f"'{escaped}'!A1:{LAST_COLUMN}"

    async def fetch_category(self, category: str) -> List[CatalogItem]:
        """
        Fetch and normalize every product row of one tab.

        The first ``header_rows`` rows are treated as headers; the first of
        them is checked against the column contract and mismatches are
        logged. Blank rows and rows without an ID are skipped.
        """
        url = f"{self.base_url}/{self.sheet_id}/values/{quote(self._range_for(category), safe='')}"
        response = await self._get(url, params={"majorDimension": "ROWS"})

        if response.status_code == 400:
            message = self._error_message(response)
            if "Unable to parse range" in message:
                raise CategoryNotFound(category)
            raise SourceUnavailable(f"Sheets API rejected request for '{category}': {message}")
        if response.status_code != 200:
            message = self._error_message(response)
            logger.error(f"[Sheets] HTTP {response.status_code} reading '{category}': {message}")
            raise SourceUnavailable(f"Sheets API returned {response.status_code}: {message}")

        rows: List[List[Any]] = response.json().get("values", [])

        if self.header_rows > 0 and rows:
            mismatches = validate_header(rows[0])
            if mismatches:
                logger.warning(
                    f"[Sheets] Header of '{category}' does not match the column contract: "
                    + "; ".join(mismatches)
                )
            rows = rows[self.header_rows:]

        items: List[CatalogItem] = []
        missing_id = 0
        for row in rows:
            if is_blank_row(row):
                continue
            item = row_to_item(row)
            if not item.id:
                missing_id += 1
                continue
            items.append(item)

        if missing_id:
            logger.warning(
                f"[Sheets] Skipped {missing_id} rows without an ID in '{category}'"
            )
        logger.info(
            f"[Sheets] Read {len(items)} rows from '{category}' ({missing_id} skipped without ID)"
        )
        return items

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()
