"""
Core data models for makerstock.

This module defines the records exchanged with the inventory backend and
the spreadsheet reader, the cache entry envelope, and the states of the
stale-while-revalidate view. Every record is built from untrusted JSON
through a ``from_dict`` constructor that rejects payloads of the wrong shape.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from makerstock.core.exceptions import ResponseFormatError
from makerstock.core.validation import parse_stock_cell

T = TypeVar("T")

UNKNOWN_CASE = "Unknown"


def _require_str(data: dict[str, Any], key: str, source: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ResponseFormatError(source, f"field '{key}' must be a string, got {value!r}")
    return value


def _require_count(data: dict[str, Any], key: str, source: str) -> int:
    value = data.get(key)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ResponseFormatError(
            source, f"field '{key}' must be a non-negative integer, got {value!r}"
        )
    return value


def _require_mapping(data: Any, source: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ResponseFormatError(source, f"expected an object, got {type(data).__name__}")
    return data


def _require_list(data: Any, source: str) -> list[Any]:
    if not isinstance(data, list):
        raise ResponseFormatError(source, f"expected a list, got {type(data).__name__}")
    return data


def parse_string_list(data: Any, source: str) -> list[str]:
    """Parse a JSON array of strings, such as case or component names."""
    items = _require_list(data, source)
    for item in items:
        if not isinstance(item, str):
            raise ResponseFormatError(source, f"expected strings, got {item!r}")
    return list(items)


@dataclass(frozen=True)
class StockItem:
    """Current available quantity of a component in a storage case."""

    component: str
    stock: int
    case_name: str

    def __str__(self) -> str:
        return f"{self.component} ({self.case_name}): {self.stock}"

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire/cache representation."""
        return {
            "component": self.component,
            "stock": self.stock,
            "caseName": self.case_name,
        }

    @classmethod
    def from_dict(cls, data: Any, source: str = "getLiveStock") -> "StockItem":
        """Create from the wire/cache representation.

        Raises:
            ResponseFormatError: If a field is missing or has the wrong type.
        """
        data = _require_mapping(data, source)
        return cls(
            component=_require_str(data, "component", source),
            stock=_require_count(data, "stock", source),
            case_name=_require_str(data, "caseName", source),
        )

    @classmethod
    def from_row(cls, row: list[str]) -> Optional["StockItem"]:
        """Create from a Live_Stock sheet row.

        Columns: A=Case, B=Component, C=Initial, D=Borrowed, E=Returned,
        F=Current stock. Returns None for rows without a component name.
        """
        component = row[1].strip() if len(row) > 1 and row[1] else ""
        if not component:
            return None

        case_name = row[0].strip() if row and row[0] else ""
        stock_cell = row[5] if len(row) > 5 else None

        return cls(
            component=component,
            stock=parse_stock_cell(stock_cell),
            case_name=case_name or UNKNOWN_CASE,
        )


def parse_stock_list(data: Any, source: str = "getLiveStock") -> list[StockItem]:
    """Parse a JSON array of stock items."""
    return [StockItem.from_dict(item, source) for item in _require_list(data, source)]


@dataclass(frozen=True)
class Holding:
    """A user's outstanding (borrowed, not yet returned) quantity of a component."""

    component: str
    outstanding: int

    def __str__(self) -> str:
        return f"{self.outstanding}x {self.component}"

    def to_dict(self) -> dict[str, Any]:
        return {"component": self.component, "outstanding": self.outstanding}

    @classmethod
    def from_dict(cls, data: Any, source: str = "getUserHoldings") -> "Holding":
        data = _require_mapping(data, source)
        return cls(
            component=_require_str(data, "component", source),
            outstanding=_require_count(data, "outstanding", source),
        )


def parse_holdings(data: Any, source: str = "getUserHoldings") -> list[Holding]:
    """Parse a JSON array of holdings."""
    return [Holding.from_dict(item, source) for item in _require_list(data, source)]


@dataclass(frozen=True)
class UserStatus:
    """Check-in status of a user, as reported by the backend."""

    name: str
    active: bool

    @classmethod
    def from_dict(cls, data: Any, source: str = "validateUser") -> "UserStatus":
        data = _require_mapping(data, source)
        active = data.get("active")
        if not isinstance(active, bool):
            raise ResponseFormatError(source, f"field 'active' must be a boolean, got {active!r}")
        return cls(name=_require_str(data, "name", source), active=active)


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a borrow or return request that reached the backend.

    ``success`` is False when the backend rejected the operation
    (e.g. not enough stock), in which case ``message`` carries its reason.
    """

    success: bool
    message: str

    def __bool__(self) -> bool:
        return self.success


def parse_write_response(data: Any, source: str) -> Optional[str]:
    """Parse a write response, returning the backend's error string if any.

    Accepted shapes are ``{"success": true}`` and ``{"error": "<reason>"}``.
    """
    data = _require_mapping(data, source)
    error = data.get("error")
    if error:
        if not isinstance(error, str):
            raise ResponseFormatError(source, f"field 'error' must be a string, got {error!r}")
        return error
    if data.get("success") is not True:
        raise ResponseFormatError(source, "response has neither 'success' nor 'error'")
    return None


@dataclass
class CacheEntry(Generic[T]):
    """Cached response data with the time it was stored."""

    data: T
    timestamp: float  # epoch seconds

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_fresh(self, now: float, ttl: float) -> bool:
        return self.age(now) <= ttl

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Any) -> "CacheEntry[Any]":
        data = _require_mapping(data, "cache")
        timestamp = data.get("timestamp")
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise ResponseFormatError("cache", f"invalid timestamp {timestamp!r}")
        if "data" not in data:
            raise ResponseFormatError("cache", "entry has no data")
        return cls(data=data["data"], timestamp=float(timestamp))


class ViewState(Enum):
    """Display states of a stale-while-revalidate view."""

    NO_DATA = "no_data"
    LOADING = "loading"  # No data yet, first fetch in flight
    SHOWING_STALE = "showing_stale"  # Cached data past its TTL
    REFRESHING = "refreshing"  # Stale data shown, refresh in flight
    SHOWING_FRESH = "showing_fresh"
    FAILED = "failed"  # First fetch failed and there is nothing to show

    def __str__(self) -> str:
        return self.value

    @property
    def has_data(self) -> bool:
        return self in (
            ViewState.SHOWING_STALE,
            ViewState.REFRESHING,
            ViewState.SHOWING_FRESH,
        )

    @property
    def is_busy(self) -> bool:
        return self in (ViewState.LOADING, ViewState.REFRESHING)
