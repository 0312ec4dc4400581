"""SQLite implementation of the key-value store."""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path

from tgterm.storage.base import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS KeyValue (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


class SqliteKeyValueStore(KeyValueStore):
    """Stores string values in a single SQLite table.

    Every ``set`` is committed immediately so values survive a crash.
    Pass ``":memory:"`` as the path for a throwaway store.
    """

    def __init__(self, path: str | Path = "./mybot.sqlite") -> None:
        self._path = str(path)
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(self._path, check_same_thread=False)
            self._conn.execute(_CREATE_TABLE)
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self._path}: {e}") from e
        logger.info("Opened key-value store at %s", self._path)

    @property
    def path(self) -> str:
        return self._path

    def get(self, key: str) -> str | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT value FROM KeyValue WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read key {key!r}: {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT OR REPLACE INTO KeyValue (key, value) VALUES (?, ?)",
                    (key, value),
                )
                self._conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write key {key!r}: {e}") from e
        logger.debug("Stored key %s", key)

    def close(self) -> None:
        with self._lock:
            self._conn.close()
