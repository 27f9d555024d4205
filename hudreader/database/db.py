"""
Key-value storage for HUD Reader.

The session store only needs a string key-value capability: one key holds
the JSON-encoded shot history. SQLiteStore backs the application
(~/.hudreader/hudreader.db); MemoryStore stands in for it in tests.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Optional, Protocol

from hudreader.errors import PersistenceFailure
from hudreader.utils.config import Config

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""


class KeyValueStore(Protocol):
    """String key-value storage capability."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """In-memory key-value store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class SQLiteStore:
    """SQLite-backed key-value store.

    sqlite3 errors are re-raised as PersistenceFailure so callers only
    deal with one exception type.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or Config.get_db_path()
        self.conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self):
        """Initialize database connection and create tables."""
        try:
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.executescript(SCHEMA)
            self.conn.commit()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Cannot open {self.db_path}: {e}") from e
        logger.info(f"Database initialized at {self.db_path}")

    def close(self):
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise PersistenceFailure(f"Database {self.db_path} is closed")
        return self.conn

    def get(self, key: str) -> Optional[str]:
        conn = self._connection()
        try:
            row = conn.execute(
                "SELECT value FROM kv WHERE key = ?", (key,),
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Read of {key!r} failed: {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        conn = self._connection()
        try:
            conn.execute("""
                INSERT INTO kv (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, (key, value))
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Write of {key!r} failed: {e}") from e

    def remove(self, key: str) -> None:
        conn = self._connection()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Delete of {key!r} failed: {e}") from e
