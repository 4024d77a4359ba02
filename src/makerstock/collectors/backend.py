"""
Client for the scripted inventory backend.

The backend is a single URL: reads are GETs selected by an ``action``
query parameter, writes are POSTs of a JSON action payload. Writes are
sent as ``text/plain`` because the host rejects the CORS preflight that
``application/json`` would trigger.
"""

import asyncio
import json
from typing import Any, Callable, Optional, TypeVar, TYPE_CHECKING

import aiohttp
import structlog

from makerstock.collectors.base import Collector
from makerstock.core.exceptions import ConfigurationError, NetworkError, ResponseFormatError

if TYPE_CHECKING:
    from makerstock.cache.tiered import TieredCache

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class BackendClient(Collector):
    """Async client for the scripted backend endpoint.

    Reads can go through ``cached_get``; writes are never cached.
    """

    def __init__(
        self,
        base_url: Optional[str],
        session: Optional[aiohttp.ClientSession] = None,
        timeout: int = 30,
        cache: Optional["TieredCache"] = None,
    ):
        """Initialize the backend client.

        Args:
            base_url: Deployment URL of the backend script.
            session: Optional aiohttp session.
            timeout: Request timeout in seconds.
            cache: Optional cache for read responses.
        """
        super().__init__(session, timeout)
        self.base_url = base_url
        self.cache = cache

    def _require_url(self) -> str:
        if not self.base_url:
            raise ConfigurationError(
                "Backend URL",
                details="set MAKERSTOCK_BACKEND_URL or pass --backend-url",
            )
        return self.base_url

    async def get(self, params: dict[str, str]) -> Any:
        """Send a read request.

        Args:
            params: Query parameters, including ``action``.

        Returns:
            Decoded JSON body.

        Raises:
            ConfigurationError: If no backend URL is configured.
            NetworkError: If the request fails.
        """
        url = self._require_url()

        try:
            async with self.session.get(
                url,
                params=params,
                headers=self._build_headers(),
            ) as resp:
                return await self._read_json(resp, url)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(url, details=str(e) or type(e).__name__)

    async def post(self, body: dict[str, Any]) -> Any:
        """Send a write request.

        Args:
            body: JSON-serializable action payload.

        Returns:
            Decoded JSON body.

        Raises:
            ConfigurationError: If no backend URL is configured.
            NetworkError: If the request fails.
        """
        url = self._require_url()
        headers = self._build_headers()
        headers["Content-Type"] = "text/plain"

        try:
            async with self.session.post(
                url,
                data=json.dumps(body),
                headers=headers,
            ) as resp:
                return await self._read_json(resp, url)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(url, details=str(e) or type(e).__name__)

    async def cached_get(
        self,
        cache_key: str,
        params: dict[str, str],
        parse: Callable[[Any], T],
    ) -> T:
        """GET with cache: returns fresh cached data, otherwise fetches and caches.

        Concurrent misses on the same key each hit the network.

        Args:
            cache_key: Unique key for this query shape.
            params: Query parameters for the request.
            parse: Converts the JSON body into typed data.

        Returns:
            Parsed data.
        """
        if self.cache:
            cached = self.cache.get_fresh(cache_key)
            if cached is not None:
                try:
                    return parse(cached)
                except ResponseFormatError as e:
                    logger.debug("discarding malformed cache entry", key=cache_key, error=str(e))
                    self.cache.invalidate(cache_key)

        data = await self.get(params)
        result = parse(data)

        if self.cache:
            self.cache.set(cache_key, data)

        return result
