"""
Tests for the durable store and the two-tier cache.
"""

import json
from unittest.mock import MagicMock

import pytest

from makerstock.cache.sqlite import DurableStore
from makerstock.cache.tiered import TieredCache
from makerstock.core.exceptions import CacheError


class TestDurableStore:
    """Tests for DurableStore."""

    def test_set_get_delete(self, store):
        """Test basic key-value operations."""
        assert store.get("a") is None
        store.set("a", "1")
        assert store.get("a") == "1"
        store.set("a", "2")
        assert store.get("a") == "2"
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.get("a") is None

    def test_prefix_is_literal(self, store):
        """Test that LIKE wildcards in a prefix are not expanded."""
        store.set("inv_cache:x", "1")
        store.set("invXcache:y", "2")
        store.set("other", "3")

        assert [key for key, _ in store.items("inv_")] == ["inv_cache:x"]
        assert store.delete_prefix("inv_") == 1
        assert store.get("invXcache:y") == "2"

    def test_persists_across_instances(self, tmp_cache_db):
        """Test that entries survive reopening the database."""
        DurableStore(tmp_cache_db).set("k", "v")
        assert DurableStore(tmp_cache_db).get("k") == "v"

    def test_stats(self, store, tmp_cache_db):
        """Test store statistics."""
        store.set("k", "v")
        stats = store.stats()
        assert stats["total_entries"] == 1
        assert stats["db_path"] == str(tmp_cache_db)
        assert stats["db_size_bytes"] > 0

    def test_unusable_path_raises_cache_error(self, tmp_path):
        """Test that a path under a regular file is reported as CacheError."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(CacheError):
            DurableStore(blocker / "cache.db")


class TestTieredCache:
    """Tests for TieredCache."""

    def test_set_then_get_fresh(self, cache):
        """Test that a value is returned unchanged right after set."""
        data = [{"component": "Servo", "stock": 9, "caseName": "CaseA"}]
        cache.set("getLiveStock", data)
        assert cache.get_fresh("getLiveStock") == data

    def test_missing_key(self, cache):
        """Test reads of an unknown key."""
        assert cache.get_fresh("nope") is None
        assert cache.get_stale("nope") is None

    def test_expired_is_stale_only(self, cache, clock):
        """Test that after the TTL only stale reads return data."""
        cache.set("getCases", ["CaseA"])
        clock.advance(TieredCache.TTL + 1)

        assert cache.get_fresh("getCases") is None
        assert cache.get_stale("getCases") == ["CaseA"]

    def test_fresh_at_ttl_boundary(self, cache, clock):
        """Test that an entry exactly TTL seconds old is still fresh."""
        cache.set("getCases", ["CaseA"])
        clock.advance(TieredCache.TTL)
        assert cache.get_fresh("getCases") == ["CaseA"]

    def test_durable_hit_hydrates_memory(self, store, clock):
        """Test that a new session reads the durable tier."""
        TieredCache(store, clock=clock).set("getCases", ["CaseA"])

        fresh_session = TieredCache(store, clock=clock)
        assert fresh_session.get_fresh("getCases") == ["CaseA"]

        store.delete(TieredCache.PREFIX + "getCases")
        assert fresh_session.get_fresh("getCases") == ["CaseA"]

    def test_expired_durable_entry_is_evicted_on_fresh_read(self, store, clock):
        """Test eviction of expired durable entries by get_fresh."""
        TieredCache(store, clock=clock).set("getCases", ["CaseA"])
        clock.advance(TieredCache.TTL + 1)

        fresh_session = TieredCache(store, clock=clock)
        assert fresh_session.get_fresh("getCases") is None
        assert store.get(TieredCache.PREFIX + "getCases") is None
        # Still readable as stale for the rest of this session
        assert fresh_session.get_stale("getCases") == ["CaseA"]

    def test_stale_read_never_evicts(self, store, clock):
        """Test that get_stale leaves expired durable entries in place."""
        TieredCache(store, clock=clock).set("getCases", ["CaseA"])
        clock.advance(TieredCache.TTL * 5)

        fresh_session = TieredCache(store, clock=clock)
        assert fresh_session.get_stale("getCases") == ["CaseA"]
        assert store.get(TieredCache.PREFIX + "getCases") is not None

    def test_durable_format(self, cache, store, clock):
        """Test the stored JSON envelope."""
        cache.set("getComponents:CaseA", ["Servo"])
        raw = store.get("inv-cache:getComponents:CaseA")
        assert json.loads(raw) == {"data": ["Servo"], "timestamp": clock.now}

    def test_invalidate_key(self, cache, store):
        """Test that invalidating a key clears it from both tiers."""
        cache.set("getCases", ["CaseA"])
        cache.set("getLiveStock", [])

        cache.invalidate("getCases")

        assert cache.get_fresh("getCases") is None
        assert cache.get_stale("getCases") is None
        assert store.get(TieredCache.PREFIX + "getCases") is None
        assert cache.get_fresh("getLiveStock") == []

    def test_invalidate_all_keeps_unrelated_keys(self, cache, store):
        """Test that clearing the cache only touches prefixed keys."""
        cache.set("getCases", ["CaseA"])
        cache.set("getComponents:CaseA", ["Servo"])
        store.set("settings:theme", "dark")

        cache.invalidate()

        assert cache.get_stale("getCases") is None
        assert cache.get_stale("getComponents:CaseA") is None
        assert store.items(TieredCache.PREFIX) == []
        assert store.get("settings:theme") == "dark"

    def test_durable_write_failure_is_swallowed(self, clock):
        """Test that the memory tier keeps working when the store fails."""
        failing = MagicMock()
        failing.set.side_effect = CacheError("set", "disk full")
        failing.get.side_effect = CacheError("get", "database is locked")
        failing.delete.side_effect = CacheError("delete", "database is locked")
        failing.delete_prefix.side_effect = CacheError("invalidate", "database is locked")

        cache = TieredCache(failing, clock=clock)
        cache.set("getCases", ["CaseA"])

        assert cache.get_fresh("getCases") == ["CaseA"]
        cache.invalidate("getCases")
        cache.invalidate()
        assert cache.get_fresh("getCases") is None

    def test_unserializable_data_is_kept_in_memory(self, cache, store):
        """Test that a value JSON cannot encode stays in the memory tier."""
        value = {"when": object()}
        cache.set("odd", value)
        assert cache.get_fresh("odd") is value
        assert store.get(TieredCache.PREFIX + "odd") is None

    def test_corrupt_durable_entry_is_ignored(self, store, clock):
        """Test that unreadable durable entries read as missing."""
        store.set(TieredCache.PREFIX + "getCases", "{not json")
        cache = TieredCache(store, clock=clock)

        assert cache.get_fresh("getCases") is None
        assert cache.get_stale("getCases") is None

    def test_memory_only(self, clock):
        """Test a cache without a durable tier."""
        cache = TieredCache(clock=clock)
        cache.set("getCases", ["CaseA"])
        assert cache.get_fresh("getCases") == ["CaseA"]
        cache.invalidate()
        assert cache.get_stale("getCases") is None

    def test_stats(self, cache, store, clock):
        """Test statistics across tiers."""
        cache.set("getCases", ["CaseA"])
        clock.advance(TieredCache.TTL + 1)
        cache.set("getLiveStock", [])

        stats = cache.stats()

        assert stats["memory_entries"] == 2
        assert stats["memory_fresh"] == 1
        assert stats["durable_entries"] == 2
        assert stats["durable_fresh"] == 1
        assert stats["keys"] == ["getCases", "getLiveStock"]

    def test_make_key(self):
        """Test cache key construction."""
        assert TieredCache.make_key("getComponents", "TSYS Case1") == "getComponents:TSYS Case1"
