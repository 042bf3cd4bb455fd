"""SQLite-backed durable key-value storage that survives process restarts."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional


class SQLiteStorage:
    """String key/value store; the durable counterpart of browser local storage.

    Keys written by this package are ``tokens``, ``userId`` and
    ``activeGeneration``. There is no coordination between two processes that
    point at the same database, so concurrent writers race on the same keys.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS durable_storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def get_item(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM durable_storage WHERE key = ?",
                (key,),
            ).fetchone()
        if not row:
            return None
        return row["value"]

    def set_item(self, key: str, value: str) -> None:
        if not key:
            raise ValueError("Storage key must be a non-empty string")
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO durable_storage (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )

    def remove_item(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM durable_storage WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT key FROM durable_storage ORDER BY key").fetchall()
        return [row["key"] for row in rows]


__all__ = ["SQLiteStorage"]
