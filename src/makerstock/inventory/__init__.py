"""
Inventory operations and view helpers.
"""

from makerstock.inventory.client import InventoryClient
from makerstock.inventory.view import StaleWhileRevalidate, filter_stock, group_by_case

__all__ = [
    "InventoryClient",
    "StaleWhileRevalidate",
    "filter_stock",
    "group_by_case",
]
