"""
Base class for HTTP collectors.

Handles session ownership, timeouts and the response checks shared by the
backend client and the spreadsheet reader.
"""

from typing import Any

import aiohttp

from makerstock import __version__
from makerstock.core.exceptions import NetworkError, ValidationError
from makerstock.core.validation import MAX_RESPONSE_SIZE, validate_response_size


class Collector:
    """Base class for HTTP collectors.

    Collectors either borrow a session (and leave closing it to the owner)
    or create one lazily and close it themselves.
    """

    # Maximum response size (10 MB) - can be overridden by subclasses
    MAX_RESPONSE_SIZE = MAX_RESPONSE_SIZE

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        timeout: int = 30,
    ):
        """Initialize the collector.

        Args:
            session: Optional aiohttp session. If not provided, one will
                     be created when needed.
            timeout: Request timeout in seconds.
        """
        self._session = session
        self._owns_session = session is None
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "Collector":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    def _build_headers(self) -> dict[str, str]:
        """Build common request headers.

        Override in subclasses to add other headers.
        """
        return {
            "User-Agent": f"makerstock/{__version__}",
            "Accept": "application/json",
        }

    async def _read_json(self, resp: aiohttp.ClientResponse, url: str) -> Any:
        """Check status and size of a response and decode its JSON body.

        The backend answers with ``text/plain`` or ``text/html`` content
        types, so the body is decoded regardless of the declared type.

        Raises:
            NetworkError: On a non-2xx status, an oversized body or a body
                that is not JSON.
        """
        if not 200 <= resp.status < 300:
            raise NetworkError(url, resp.status, resp.reason)

        content_length = resp.headers.get("Content-Length")
        if content_length is not None:
            try:
                validate_response_size(int(content_length), self.MAX_RESPONSE_SIZE)
            except ValueError:
                pass  # Invalid Content-Length header, proceed with caution
            except ValidationError as e:
                raise NetworkError(url, resp.status, str(e))

        try:
            return await resp.json(content_type=None)
        except ValueError as e:
            raise NetworkError(url, resp.status, f"invalid JSON body: {e}")
