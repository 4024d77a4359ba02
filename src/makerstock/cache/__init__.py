"""
Cache module for storing backend responses.

Provides an in-process + SQLite two-tier cache with TTL and stale reads.
"""

from makerstock.cache.sqlite import DurableStore
from makerstock.cache.tiered import TieredCache

__all__ = ["DurableStore", "TieredCache"]
