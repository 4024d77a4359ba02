"""
Pytest fixtures and configuration for makerstock tests.

Provides a fake aiohttp session, a controllable clock, and sample
inventory data for unit testing.
"""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from makerstock.cache.sqlite import DurableStore
from makerstock.cache.tiered import TieredCache
from makerstock.core.models import Holding, StockItem
from makerstock.inventory.client import InventoryClient

BACKEND_URL = "https://script.example.com/macros/s/deployment/exec"


# =============================================================================
# Fake HTTP
# =============================================================================


class FakeResponse:
    """Stand-in for aiohttp.ClientResponse used as an async context manager."""

    def __init__(
        self,
        payload: Any = None,
        status: int = 200,
        reason: str = "OK",
        headers: dict[str, str] | None = None,
    ):
        self.payload = payload
        self.status = status
        self.reason = reason
        self.headers = headers or {}

    async def json(self, content_type: str | None = "application/json") -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class FakeSession:
    """Records requests and replays queued responses in order."""

    def __init__(self) -> None:
        self.responses: list[Any] = []
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def queue(self, payload: Any = None, status: int = 200, **kwargs: Any) -> None:
        self.responses.append(FakeResponse(payload, status, **kwargs))

    def fail_with(self, error: Exception) -> None:
        self.responses.append(error)

    def get(self, url: str, params: dict | None = None, headers: dict | None = None):
        return self._next("GET", url, params=params, headers=headers)

    def post(self, url: str, data: str | None = None, headers: dict | None = None):
        return self._next("POST", url, data=data, headers=headers)

    async def close(self) -> None:
        self.closed = True

    def _next(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"unexpected {method} {url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeClock:
    """Controllable time source in epoch seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def backend_url() -> str:
    """Return the backend deployment URL used in tests."""
    return BACKEND_URL


@pytest.fixture
def fake_session() -> FakeSession:
    """Create a fake HTTP session."""
    return FakeSession()


@pytest.fixture
def clock() -> FakeClock:
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def tmp_cache_db(tmp_path: Path) -> Path:
    """Create a temporary cache database path."""
    return tmp_path / "test_cache.db"


@pytest.fixture
def store(tmp_cache_db: Path) -> DurableStore:
    """Create a durable store in a temporary directory."""
    return DurableStore(tmp_cache_db)


@pytest.fixture
def cache(store: DurableStore, clock: FakeClock) -> TieredCache:
    """Create a two-tier cache on the fake clock."""
    return TieredCache(store, clock=clock)


@pytest.fixture
def client(fake_session: FakeSession, cache: TieredCache) -> InventoryClient:
    """Create an inventory client without spreadsheet credentials."""
    return InventoryClient(BACKEND_URL, cache=cache, session=fake_session)


@pytest.fixture
def sheets_client(fake_session: FakeSession, cache: TieredCache) -> InventoryClient:
    """Create an inventory client that reads stock from the spreadsheet."""
    return InventoryClient(
        BACKEND_URL,
        cache=cache,
        sheets_api_key="test-key",
        spreadsheet_id="sheet-123",
        session=fake_session,
    )


@pytest.fixture
def sample_stock() -> list[StockItem]:
    """Create sample stock items across two cases."""
    return [
        StockItem(component="MG996R Servo", stock=9, case_name="TSYS Case1"),
        StockItem(component="SG90 Servo", stock=0, case_name="TSYS Case1"),
        StockItem(component="HC-SR04 Sensor", stock=4, case_name="TSXS Case2"),
    ]


@pytest.fixture
def sample_holdings() -> list[Holding]:
    """Create sample holdings for one user."""
    return [
        Holding(component="MG996R Servo", outstanding=2),
        Holding(component="HC-SR04 Sensor", outstanding=1),
    ]


@pytest.fixture
def mock_inventory_client() -> MagicMock:
    """Create a mock inventory client usable as an async context manager."""
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.fetch_cases = AsyncMock(return_value=[])
    client.fetch_components_by_case = AsyncMock(return_value=[])
    client.fetch_user_holdings = AsyncMock(return_value=[])
    client.borrow_component = AsyncMock()
    client.return_component = AsyncMock()
    client.verify_user = AsyncMock()
    return client
