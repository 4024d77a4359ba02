"""
Read-only client for the spreadsheet values API.

Reading the stock sheet directly is much faster than going through the
backend script, so it is preferred whenever an API key and spreadsheet ID
are configured.
"""

import asyncio
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from makerstock.collectors.base import Collector
from makerstock.core.exceptions import NetworkError, ResponseFormatError
from makerstock.core.models import StockItem


def parse_stock_rows(rows: list[list[str]]) -> list[StockItem]:
    """Map Live_Stock rows to stock items, dropping rows without a component."""
    items = []
    for row in rows:
        item = StockItem.from_row(row)
        if item is not None:
            items.append(item)
    return items


class SheetsClient(Collector):
    """Async client for ``spreadsheets.values.get``."""

    BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"

    # Columns A=Case B=Component C=Initial D=Borrowed E=Returned F=Current_Stock,
    # starting below the header row
    STOCK_RANGE = "Live_Stock!A2:F"

    def __init__(
        self,
        api_key: str,
        spreadsheet_id: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: int = 30,
    ):
        """Initialize the spreadsheet client.

        Args:
            api_key: API key with read access to the spreadsheet.
            spreadsheet_id: ID of the inventory spreadsheet.
            session: Optional aiohttp session.
            timeout: Request timeout in seconds.
        """
        super().__init__(session, timeout)
        self.api_key = api_key
        self.spreadsheet_id = spreadsheet_id

    async def get_values(self, cell_range: str) -> list[list[str]]:
        """Fetch the cell values of a range.

        Args:
            cell_range: A1 notation range, e.g. "Live_Stock!A2:F".

        Returns:
            Rows of cell strings. Empty when the range has no data.

        Raises:
            NetworkError: If the request fails.
            ResponseFormatError: If the body is not a values response.
        """
        url = f"{self.BASE_URL}/{self.spreadsheet_id}/values/{quote(cell_range, safe='')}"

        try:
            async with self.session.get(
                url,
                params={"key": self.api_key},
                headers=self._build_headers(),
            ) as resp:
                data = await self._read_json(resp, url)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(url, details=str(e) or type(e).__name__)

        return self._parse_values(data)

    async def fetch_live_stock(self) -> list[StockItem]:
        """Fetch and map the live stock sheet."""
        rows = await self.get_values(self.STOCK_RANGE)
        return parse_stock_rows(rows)

    @staticmethod
    def _parse_values(data: Any) -> list[list[str]]:
        if not isinstance(data, dict):
            raise ResponseFormatError("spreadsheet", "expected an object")

        values = data.get("values", [])
        if not isinstance(values, list):
            raise ResponseFormatError("spreadsheet", "'values' must be a list")

        rows = []
        for row in values:
            if not isinstance(row, list):
                raise ResponseFormatError("spreadsheet", f"row must be a list, got {row!r}")
            rows.append([cell if isinstance(cell, str) else str(cell) for cell in row])
        return rows
