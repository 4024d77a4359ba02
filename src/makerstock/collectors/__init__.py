"""
HTTP collectors for the inventory backend and the stock spreadsheet.
"""

from makerstock.collectors.backend import BackendClient
from makerstock.collectors.base import Collector
from makerstock.collectors.sheets import SheetsClient, parse_stock_rows

__all__ = [
    "Collector",
    "BackendClient",
    "SheetsClient",
    "parse_stock_rows",
]
