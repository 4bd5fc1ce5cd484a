"""Local Cache Store.

A per-device key/value store backed by SQLite. Every value is a JSON document;
the users, articles and notifications collections are each stored under their
own key and overwritten wholesale on every snapshot write.
"""

import json
import logging
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Union

import pytz

from config import CACHE_DB_PATH, SNAPSHOT_KEYS
from core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class LocalCacheStore:
    """Durable key/value store with whole-snapshot writes."""

    def __init__(
        self,
        db_path: Union[str, Path] = CACHE_DB_PATH,
        table_name: str = "cache_entries",
    ):
        self.db_path = str(db_path)
        self.table_name = table_name
        self._table_ready = False

    def _connect(self) -> sqlite3.Connection:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        if not self._table_ready:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table_name} (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()
            self._table_ready = True
        return conn

    def get(self, key: str, default: Any = None) -> Any:
        """Read and decode one key.

        Raises:
            PersistenceError: If the store cannot be read or the value is
                not valid JSON.
        """
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    f"SELECT value FROM {self.table_name} WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to read '{key}': {exc}") from exc
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted cache entry '{key}': {exc}") from exc

    def set(self, key: str, value: Any) -> None:
        self.write_snapshot({key: value})

    def write_snapshot(self, entries: Dict[str, Any]) -> None:
        """Overwrite every given key in one transaction.

        Either all keys are replaced or none are, so a crash mid-write never
        leaves a mix of old and new collections behind.

        Raises:
            PersistenceError: If encoding or the write fails.
        """
        now = datetime.now(pytz.utc).isoformat()
        try:
            rows = [(key, json.dumps(value), now) for key, value in entries.items()]
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Snapshot is not serializable: {exc}") from exc
        try:
            with closing(self._connect()) as conn, conn:
                conn.executemany(
                    f"""
                    INSERT INTO {self.table_name} (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    rows,
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Snapshot write failed: {exc}") from exc
        logger.debug("Snapshot written: %s", ", ".join(entries))

    def load_snapshot(self, keys: Iterable[str] = SNAPSHOT_KEYS) -> Dict[str, Any]:
        """Read the given keys; missing keys are left out of the result."""
        snapshot = {}
        for key in keys:
            value = self.get(key)
            if value is not None:
                snapshot[key] = value
        return snapshot

