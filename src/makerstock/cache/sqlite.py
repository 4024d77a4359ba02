"""
SQLite-backed durable key-value store.

Holds JSON-encoded cache entries across process restarts. Expiry is not
tracked here; the tiered cache decides freshness from each entry's
timestamp.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from makerstock.core.exceptions import CacheError


class DurableStore:
    """Persistent string key-value store in a single SQLite file."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file. Defaults to ~/.makerstock/cache.db
        """
        if db_path is None:
            db_path = Path.home() / ".makerstock" / "cache.db"

        self.db_path = Path(db_path)

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError("initialization", str(e))

        self._init_db()

    def _init_db(self) -> None:
        """Initialize the database schema."""
        with self._connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection context manager.

        Yields:
            sqlite3.Connection that auto-commits on success.
        """
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise CacheError("connect", str(e))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise CacheError("database operation", str(e))
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        """Return the stored value for a key, or None."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT value FROM cache WHERE key = ?",
                (key,),
            ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        with self._connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO cache (key, value) VALUES (?, ?)",
                (key, value),
            )

    def delete(self, key: str) -> bool:
        """Delete a key.

        Returns:
            True if an entry was deleted, False if not found.
        """
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM cache WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def items(self, prefix: str = "") -> list[tuple[str, str]]:
        """List (key, value) pairs whose key starts with a prefix."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT key, value FROM cache WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
        return [(row["key"], row["value"]) for row in rows]

    def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with a prefix.

        Matching uses substr rather than LIKE so that ``_`` and ``%`` in
        the prefix are taken literally.

        Returns:
            Number of entries deleted.
        """
        with self._connection() as conn:
            cursor = conn.execute(
                "DELETE FROM cache WHERE substr(key, 1, ?) = ?",
                (len(prefix), prefix),
            )
            return cursor.rowcount

    def stats(self) -> dict[str, Any]:
        """Get store statistics."""
        with self._connection() as conn:
            total = conn.execute("SELECT COUNT(*) FROM cache").fetchone()[0]

        db_size = self.db_path.stat().st_size if self.db_path.exists() else 0

        return {
            "total_entries": total,
            "db_size_bytes": db_size,
            "db_path": str(self.db_path),
        }
