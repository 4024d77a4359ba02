"""
Two-tier response cache.

An in-process dict sits in front of a durable store. Both tiers hold the
same ``{"data", "timestamp"}`` envelope. Entries are fresh for one hour and
can still be read as stale after that, which is what the inventory view
uses to show something immediately while it refreshes.

Durable-tier failures (locked or corrupt database, full disk, bad JSON)
never reach the caller; the in-process tier keeps working for the session.
"""

import json
import time
from typing import Any, Callable, Optional

import structlog

from makerstock.cache.sqlite import DurableStore
from makerstock.core.exceptions import CacheError, ResponseFormatError
from makerstock.core.models import CacheEntry

logger = structlog.get_logger(__name__)


class TieredCache:
    """Read-through cache with an in-process tier and a durable tier.

    Construct one per session and hand it to every client that caches.
    """

    TTL = 3600  # 1 hour
    PREFIX = "inv-cache:"

    def __init__(
        self,
        store: Optional[DurableStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache.

        Args:
            store: Durable tier. Without one the cache is in-process only.
            clock: Returns the current time in epoch seconds.
        """
        self.store = store
        self.clock = clock
        self._memory: dict[str, CacheEntry[Any]] = {}

    def get_fresh(self, key: str) -> Optional[Any]:
        """Return cached data if it is within the TTL.

        Checks the in-process tier, then the durable tier. A durable hit is
        copied into the in-process tier. An expired durable entry is removed
        from the durable tier; its data stays readable via get_stale for the
        rest of the session.

        Args:
            key: Logical cache key, e.g. "getCases".

        Returns:
            Cached data or None.
        """
        now = self.clock()

        entry = self._memory.get(key)
        if entry is not None and entry.is_fresh(now, self.TTL):
            logger.debug("cache hit", key=key, tier="memory")
            return entry.data

        durable = self._read_durable(key)
        if durable is not None:
            if durable.is_fresh(now, self.TTL):
                self._memory[key] = durable
                logger.debug("cache hit", key=key, tier="durable")
                return durable.data

            if entry is None or entry.timestamp < durable.timestamp:
                self._memory[key] = durable
            self._delete_durable(key)
            logger.debug("evicted expired entry", key=key, age=durable.age(now))

        logger.debug("cache miss", key=key)
        return None

    def get_stale(self, key: str) -> Optional[Any]:
        """Return cached data regardless of age. Never evicts.

        Args:
            key: Logical cache key.

        Returns:
            Cached data or None.
        """
        entry = self._memory.get(key)
        if entry is not None:
            return entry.data

        durable = self._read_durable(key)
        if durable is not None:
            self._memory[key] = durable
            return durable.data

        return None

    def set(self, key: str, data: Any) -> None:
        """Store data in both tiers, timestamped now.

        Args:
            key: Logical cache key.
            data: JSON-serializable data.
        """
        entry = CacheEntry(data=data, timestamp=self.clock())
        self._memory[key] = entry

        if self.store is None:
            return
        try:
            self.store.set(self.PREFIX + key, json.dumps(entry.to_dict()))
        except (CacheError, TypeError, ValueError) as e:
            logger.debug("durable cache write failed", key=key, error=str(e))

    def invalidate(self, key: Optional[str] = None) -> None:
        """Remove one key, or every entry under the cache prefix.

        Args:
            key: Logical cache key. None clears the whole cache.
        """
        if key is not None:
            self._memory.pop(key, None)
            self._delete_durable(key)
            return

        self._memory.clear()
        if self.store is None:
            return
        try:
            self.store.delete_prefix(self.PREFIX)
        except CacheError as e:
            logger.debug("durable cache clear failed", error=str(e))

    def stats(self) -> dict[str, Any]:
        """Get cache statistics for both tiers."""
        now = self.clock()
        memory_fresh = sum(1 for e in self._memory.values() if e.is_fresh(now, self.TTL))

        result: dict[str, Any] = {
            "memory_entries": len(self._memory),
            "memory_fresh": memory_fresh,
            "durable_entries": 0,
            "durable_fresh": 0,
            "keys": sorted(self._memory),
        }

        if self.store is None:
            return result

        try:
            items = self.store.items(self.PREFIX)
            result.update(self.store.stats())
        except CacheError as e:
            logger.debug("durable cache stats failed", error=str(e))
            return result

        keys = set(self._memory)
        for storage_key, raw in items:
            keys.add(storage_key[len(self.PREFIX):])
            result["durable_entries"] += 1
            entry = self._decode(storage_key, raw)
            if entry is not None and entry.is_fresh(now, self.TTL):
                result["durable_fresh"] += 1
        result["keys"] = sorted(keys)

        return result

    @staticmethod
    def make_key(*parts: str) -> str:
        """Create a cache key from an action name and its parameters.

        Args:
            *parts: Key components to join.

        Returns:
            Colon-separated cache key.
        """
        return ":".join(str(p) for p in parts)

    def _read_durable(self, key: str) -> Optional[CacheEntry[Any]]:
        if self.store is None:
            return None
        try:
            raw = self.store.get(self.PREFIX + key)
        except CacheError as e:
            logger.debug("durable cache read failed", key=key, error=str(e))
            return None
        if raw is None:
            return None
        return self._decode(key, raw)

    def _delete_durable(self, key: str) -> None:
        if self.store is None:
            return
        try:
            self.store.delete(self.PREFIX + key)
        except CacheError as e:
            logger.debug("durable cache delete failed", key=key, error=str(e))

    @staticmethod
    def _decode(key: str, raw: str) -> Optional[CacheEntry[Any]]:
        try:
            return CacheEntry.from_dict(json.loads(raw))
        except (json.JSONDecodeError, ResponseFormatError) as e:
            logger.debug("ignoring corrupt cache entry", key=key, error=str(e))
            return None
