"""
Inventory client.

Orchestrates the backend and spreadsheet collectors with a shared session
and cache, and exposes the typed inventory operations used by the CLI.
"""

from functools import partial
from typing import Any, Optional

import aiohttp
import structlog

from makerstock.cache.sqlite import DurableStore
from makerstock.cache.tiered import TieredCache
from makerstock.collectors.backend import BackendClient
from makerstock.collectors.sheets import SheetsClient
from makerstock.config import Settings
from makerstock.core.exceptions import CacheError, ResponseFormatError
from makerstock.core.models import (
    Holding,
    OperationResult,
    StockItem,
    UserStatus,
    parse_holdings,
    parse_stock_list,
    parse_string_list,
    parse_write_response,
)
from makerstock.core.validation import validate_not_empty, validate_positive_int
from makerstock.inventory.view import StaleWhileRevalidate

logger = structlog.get_logger(__name__)

LIVE_STOCK_KEY = "getLiveStock"


class InventoryClient:
    """Typed inventory operations over a cached backend connection.

    Use as an async context manager so the shared HTTP session is closed:

        async with InventoryClient.from_settings(Settings.from_env()) as client:
            stock = await client.fetch_live_stock()
    """

    def __init__(
        self,
        backend_url: Optional[str],
        cache: Optional[TieredCache] = None,
        sheets_api_key: Optional[str] = None,
        spreadsheet_id: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: int = 30,
    ):
        """Initialize the client.

        Args:
            backend_url: Deployment URL of the backend script.
            cache: Cache shared by all cached reads. Defaults to in-process only.
            sheets_api_key: API key for direct spreadsheet reads.
            spreadsheet_id: ID of the inventory spreadsheet.
            session: Optional aiohttp session. Created lazily if omitted.
            timeout: Request timeout in seconds.
        """
        self.backend_url = backend_url
        self.cache = cache if cache is not None else TieredCache()
        self.sheets_api_key = sheets_api_key
        self.spreadsheet_id = spreadsheet_id
        self.timeout = timeout

        self._session = session
        self._owns_session = session is None
        self._backend: Optional[BackendClient] = None
        self._sheets: Optional[SheetsClient] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> "InventoryClient":
        """Build a client with a durable cache from settings.

        Missing settings are logged here, once, and the client is built
        anyway. Without a usable cache file the cache is in-process only.
        """
        settings.report_problems()

        try:
            store: Optional[DurableStore] = DurableStore(settings.cache_path)
        except CacheError as e:
            logger.warning("durable cache unavailable", error=str(e))
            store = None

        return cls(
            settings.backend_url,
            cache=TieredCache(store),
            sheets_api_key=settings.sheets_api_key,
            spreadsheet_id=settings.spreadsheet_id,
            session=session,
            timeout=settings.timeout,
        )

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create the session shared by both collectors."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    @property
    def backend(self) -> BackendClient:
        """Backend collector, bound to the shared session on first use."""
        if self._backend is None:
            self._backend = BackendClient(
                self.backend_url,
                session=self.session,
                timeout=self.timeout,
                cache=self.cache,
            )
        return self._backend

    @property
    def sheets(self) -> Optional[SheetsClient]:
        """Spreadsheet collector, or None without credentials."""
        if not (self.sheets_api_key and self.spreadsheet_id):
            return None
        if self._sheets is None:
            self._sheets = SheetsClient(
                self.sheets_api_key,
                self.spreadsheet_id,
                session=self.session,
                timeout=self.timeout,
            )
        return self._sheets

    async def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None
        self._backend = None
        self._sheets = None

    async def __aenter__(self) -> "InventoryClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def fetch_cases(self) -> list[str]:
        """Fetch all case names.

        GET ?action=getCases -> ["TSYS Case1", "TSXS Case2"]
        """
        return await self.backend.cached_get(
            "getCases",
            {"action": "getCases"},
            lambda data: parse_string_list(data, "getCases"),
        )

    async def fetch_components_by_case(self, case_name: str) -> list[str]:
        """Fetch component names stored in one case.

        GET ?action=getComponents&case=<caseName> -> ["MG996R Servo", "SG90 Servo"]

        Each case is cached under its own key.
        """
        case_name = validate_not_empty(case_name, "Case name")
        return await self.backend.cached_get(
            TieredCache.make_key("getComponents", case_name),
            {"action": "getComponents", "case": case_name},
            lambda data: parse_string_list(data, "getComponents"),
        )

    async def fetch_live_stock(self, force: bool = False) -> list[StockItem]:
        """Fetch current stock of every component.

        Reads the stock sheet directly when spreadsheet credentials are
        configured and falls back to the backend otherwise. Either way
        the result is cached under the same key.

        Args:
            force: Skip the fresh-cache check and always fetch.
        """
        cached = None if force else self.cache.get_fresh(LIVE_STOCK_KEY)
        if cached is not None:
            try:
                return parse_stock_list(cached)
            except ResponseFormatError as e:
                logger.debug("discarding malformed cache entry", key=LIVE_STOCK_KEY, error=str(e))
                self.cache.invalidate(LIVE_STOCK_KEY)

        if self.sheets is not None:
            items = await self.sheets.fetch_live_stock()
        else:
            data = await self.backend.get({"action": "getLiveStock"})
            items = parse_stock_list(data)

        self.cache.set(LIVE_STOCK_KEY, [item.to_dict() for item in items])
        return items

    def cached_live_stock(self) -> Optional[list[StockItem]]:
        """Return cached live stock even if it has expired, or None."""
        cached = self.cache.get_stale(LIVE_STOCK_KEY)
        if cached is None:
            return None
        try:
            return parse_stock_list(cached)
        except ResponseFormatError as e:
            logger.debug("ignoring malformed stale entry", key=LIVE_STOCK_KEY, error=str(e))
            return None

    def live_stock_view(self, force: bool = False) -> StaleWhileRevalidate[list[StockItem]]:
        """Create a stale-while-revalidate view of the live stock.

        Args:
            force: Refresh from the network even if the cache is fresh.
        """
        return StaleWhileRevalidate(
            self.cached_live_stock,
            partial(self.fetch_live_stock, force=force),
        )

    async def fetch_user_holdings(self, user_id: str) -> list[Holding]:
        """Fetch what a user currently has borrowed.

        GET ?action=getUserHoldings&userId=<id>
        -> [{"component": "MG996R Servo", "outstanding": 2}, ...]

        Never cached: holdings must be current when a return is made.
        """
        user_id = validate_not_empty(user_id, "User ID")
        data = await self.backend.get({"action": "getUserHoldings", "userId": user_id})
        return parse_holdings(data)

    async def verify_user(self, user_id: str) -> UserStatus:
        """Check whether a user is checked in at the hub.

        GET ?action=validateUser&userId=<id> -> {"name": "Ada", "active": true}
        """
        user_id = validate_not_empty(user_id, "User ID")
        data = await self.backend.get({"action": "validateUser", "userId": user_id})
        return UserStatus.from_dict(data)

    async def borrow_component(
        self,
        user_id: str,
        case_name: str,
        component: str,
        quantity: int,
    ) -> OperationResult:
        """Submit a borrow transaction.

        POST {action: "borrow", userId, caseName, component, quantity}
        -> {"success": true} or {"error": "Not enough stock available"}

        Raises:
            ValidationError: Before any request, if an argument is invalid.
            NetworkError: If the request fails.
        """
        user_id = validate_not_empty(user_id, "User ID")
        validate_not_empty(case_name, "Case name")
        validate_not_empty(component, "Component")
        quantity = validate_positive_int(quantity, "Quantity")

        data = await self.backend.post({
            "action": "borrow",
            "userId": user_id,
            "caseName": case_name,
            "component": component,
            "quantity": quantity,
        })

        # The backend clears its own cache on borrow; ours expires with the TTL
        error = parse_write_response(data, "borrow")
        if error:
            return OperationResult(success=False, message=error)

        return OperationResult(
            success=True,
            message=f"Successfully borrowed {quantity}x {component}!",
        )

    async def return_component(
        self,
        user_id: str,
        component: str,
        quantity: int,
    ) -> OperationResult:
        """Submit a return transaction.

        POST {action: "return", userId, component, quantity}
        -> {"success": true} or {"error": "Return quantity exceeds borrowed amount"}

        Raises:
            ValidationError: Before any request, if an argument is invalid.
            NetworkError: If the request fails.
        """
        user_id = validate_not_empty(user_id, "User ID")
        validate_not_empty(component, "Component")
        quantity = validate_positive_int(quantity, "Quantity")

        data = await self.backend.post({
            "action": "return",
            "userId": user_id,
            "component": component,
            "quantity": quantity,
        })

        error = parse_write_response(data, "return")
        if error:
            return OperationResult(success=False, message=error)

        return OperationResult(
            success=True,
            message=f"Successfully returned {quantity}x {component}!",
        )
