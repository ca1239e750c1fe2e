"""
Key-value storage backends for EventLog.

Each store keeps a handful of string-keyed slots, each holding a full JSON
snapshot that is rewritten on every mutation.
"""
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

log = logging.getLogger(__name__)

TABLE_NAME = "kv_store"


class StorageError(Exception):
    """Raised by a storage backend when a read or write fails."""


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryKeyValueStorage:
    """Dict-backed storage. Nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self):
        return list(self._items.keys())


class SqliteKeyValueStorage:
    """Stores slots in a single SQLite table, one row per key."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._initialized = False

    def get_connection(self) -> sqlite3.Connection:
        """Establishes a connection to the SQLite database."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row # Access columns by name
        return conn

    def initialize(self) -> None:
        """Creates the key-value table if it doesn't exist."""
        try:
            with closing(self.get_connection()) as conn, conn:
                conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL  -- ISO 8601, UTC
                    )
                """)
            self._initialized = True
            log.debug(f"Key-value storage initialized at {self.path}")
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Could not initialize storage at {self.path}: {e}") from e

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize()

    def get_item(self, key: str) -> Optional[str]:
        self._ensure_initialized()
        try:
            with closing(self.get_connection()) as conn, conn:
                row = conn.execute(f"SELECT value FROM {TABLE_NAME} WHERE key = ?", (key,)).fetchone()
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Could not read '{key}': {e}") from e
        return row["value"] if row else None

    def set_item(self, key: str, value: str) -> None:
        self._ensure_initialized()
        now_utc_iso = datetime.now(timezone.utc).isoformat()
        try:
            with closing(self.get_connection()) as conn, conn:
                conn.execute(
                    f"""
                    INSERT INTO {TABLE_NAME} (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                    """,
                    (key, value, now_utc_iso)
                )
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Could not write '{key}': {e}") from e
        log.debug(f"Wrote {len(value)} chars to '{key}'.")

    def remove_item(self, key: str) -> None:
        self._ensure_initialized()
        try:
            with closing(self.get_connection()) as conn, conn:
                conn.execute(f"DELETE FROM {TABLE_NAME} WHERE key = ?", (key,))
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Could not remove '{key}': {e}") from e
