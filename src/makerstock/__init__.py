"""
makerstock

Inventory client for a makerspace: browse component stock, borrow items and
return them. Talks to a spreadsheet-backed script endpoint, with a two-tier
(in-process + SQLite) cache in front of the read-heavy queries.

Quick Start:
    >>> import asyncio
    >>> from makerstock import InventoryClient, Settings
    >>> async def main():
    ...     async with InventoryClient.from_settings(Settings.from_env()) as client:
    ...         for item in await client.fetch_live_stock():
    ...             print(item)
    >>> asyncio.run(main())
    MG996R Servo (TSYS Case1): 9
"""

__version__ = "0.1.0"

from makerstock.cache.sqlite import DurableStore
from makerstock.cache.tiered import TieredCache
from makerstock.config import Settings

# Exceptions
from makerstock.core.exceptions import (
    CacheError,
    ConfigurationError,
    MakerStockError,
    NetworkError,
    ResponseFormatError,
    ValidationError,
)

# Data models
from makerstock.core.models import (
    CacheEntry,
    Holding,
    OperationResult,
    StockItem,
    UserStatus,
    ViewState,
)
from makerstock.core.validation import validate_not_empty, validate_positive_int
from makerstock.inventory.client import InventoryClient
from makerstock.inventory.view import StaleWhileRevalidate, filter_stock, group_by_case

__all__ = [
    # Version
    "__version__",
    # Client
    "InventoryClient",
    "Settings",
    "TieredCache",
    "DurableStore",
    "StaleWhileRevalidate",
    "filter_stock",
    "group_by_case",
    "validate_not_empty",
    "validate_positive_int",
    # Models
    "CacheEntry",
    "Holding",
    "OperationResult",
    "StockItem",
    "UserStatus",
    "ViewState",
    # Exceptions
    "MakerStockError",
    "ConfigurationError",
    "NetworkError",
    "ResponseFormatError",
    "ValidationError",
    "CacheError",
]
