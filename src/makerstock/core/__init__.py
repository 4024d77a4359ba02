"""
Core module for makerstock.

Contains data models, input validation, and exceptions.
"""

from makerstock.core.exceptions import (
    CacheError,
    ConfigurationError,
    MakerStockError,
    NetworkError,
    ResponseFormatError,
    ValidationError,
)
from makerstock.core.models import (
    CacheEntry,
    Holding,
    OperationResult,
    StockItem,
    UserStatus,
    ViewState,
)

__all__ = [
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
