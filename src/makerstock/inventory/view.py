"""
Stale-while-revalidate view state and inventory display helpers.

A view shows cached data immediately, even past its TTL, and refreshes it
in a background task it owns. A refresh that fails keeps the stale data on
screen; only a failed first load with nothing cached is reported.
"""

import asyncio
from typing import Awaitable, Callable, Generic, Iterable, Optional, TypeVar

import structlog

from makerstock.core.models import StockItem, ViewState

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class StaleWhileRevalidate(Generic[T]):
    """Owns the data, state and refresh task of one view.

    Transitions:
        NO_DATA -> SHOWING_STALE -> REFRESHING -> SHOWING_FRESH | SHOWING_STALE
        NO_DATA -> LOADING -> SHOWING_FRESH | FAILED

    Each refresh gets a generation number. Results from a superseded
    refresh are dropped, so an old response can never overwrite a newer one.
    """

    def __init__(
        self,
        read_stale: Callable[[], Optional[T]],
        fetch: Callable[[], Awaitable[T]],
        on_change: Optional[Callable[["StaleWhileRevalidate[T]"], None]] = None,
    ):
        """Initialize the view.

        Args:
            read_stale: Synchronous read of cached data, ignoring its age.
            fetch: Coroutine function producing fresh data.
            on_change: Called after every state change.
        """
        self.read_stale = read_stale
        self.fetch = fetch
        self.on_change = on_change

        self.state = ViewState.NO_DATA
        self.data: Optional[T] = None
        self.error: Optional[BaseException] = None

        self._task: Optional[asyncio.Task[None]] = None
        self._generation = 0

    @property
    def refreshing(self) -> bool:
        return self.state.is_busy

    def start(self) -> None:
        """Show cached data if there is any, then start a refresh.

        Must be called from a running event loop.
        """
        stale = self.read_stale()
        if stale is not None:
            self.data = stale
            self._set_state(ViewState.SHOWING_STALE)
        self.refresh()

    def refresh(self) -> None:
        """Start a refresh, cancelling any refresh still in flight."""
        self._cancel_task()
        self._generation += 1

        if self.data is None:
            self._set_state(ViewState.LOADING)
        else:
            self._set_state(ViewState.REFRESHING)

        self._task = asyncio.get_running_loop().create_task(self._run(self._generation))

    async def wait(self) -> ViewState:
        """Wait for the current refresh to settle and return the final state."""
        task = self._task
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self.state

    async def close(self) -> None:
        """Cancel any refresh in flight. Its result will be discarded."""
        self._generation += 1
        task = self._cancel_task()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> "StaleWhileRevalidate[T]":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _run(self, generation: int) -> None:
        try:
            data = await self.fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if generation != self._generation:
                return
            if self.data is not None:
                # Keep showing what we have
                logger.info("background refresh failed", error=str(e))
                self._set_state(ViewState.SHOWING_STALE)
            else:
                self.error = e
                self._set_state(ViewState.FAILED)
            return

        if generation != self._generation:
            return
        self.data = data
        self.error = None
        self._set_state(ViewState.SHOWING_FRESH)

    def _cancel_task(self) -> Optional["asyncio.Task[None]"]:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            return task
        return None

    def _set_state(self, state: ViewState) -> None:
        self.state = state
        if self.on_change is not None:
            self.on_change(self)


def filter_stock(items: Iterable[StockItem], query: str) -> list[StockItem]:
    """Case-insensitive match on component or case name."""
    needle = query.strip().lower()
    if not needle:
        return list(items)
    return [
        item for item in items
        if needle in item.component.lower() or needle in item.case_name.lower()
    ]


def group_by_case(items: Iterable[StockItem]) -> dict[str, list[StockItem]]:
    """Group items by case name, keeping cases in first-seen order."""
    groups: dict[str, list[StockItem]] = {}
    for item in items:
        groups.setdefault(item.case_name, []).append(item)
    return groups
