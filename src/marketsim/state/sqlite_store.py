"""SQLite key-value store for restart-safe portfolios."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path


class SqliteKeyValueStore:
    """SQLite-backed implementation of the key-value state store."""

    def __init__(self, db_path: str) -> None:
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.connection = sqlite3.connect(path, check_same_thread=False)
        self.connection.row_factory = sqlite3.Row
        self._initialize_schema()

    def get(self, key: str) -> str | None:
        row = self.connection.execute(
            """
            SELECT value
            FROM kv
            WHERE key = ?
            """,
            (key,),
        ).fetchone()
        if row is None:
            return None
        return str(row["value"])

    def set(self, key: str, value: str) -> None:
        now = self._utc_now()
        self.connection.execute(
            """
            INSERT OR REPLACE INTO kv(key, value, updated_ts)
            VALUES(?, ?, ?)
            """,
            (key, value, now),
        )
        self.connection.commit()

    def close(self) -> None:
        self.connection.close()

    def _initialize_schema(self) -> None:
        self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS kv(
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_ts TEXT NOT NULL
            )
            """
        )
        self.connection.commit()

    @staticmethod
    def _utc_now() -> str:
        return datetime.now(tz=UTC).isoformat()
