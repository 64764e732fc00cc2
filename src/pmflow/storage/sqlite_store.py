"""SQLite key-value backend with WAL mode."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from pmflow.storage.base import StorageBackend

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SQLiteStore(StorageBackend):
    """SQLite-based key-value storage. Values are stored as JSON text."""

    def __init__(self, db_path: Path, *, wal_mode: bool = True) -> None:
        self.db_path = db_path
        self.wal_mode = wal_mode
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Create database and apply schema. A second call is a no-op."""
        if self._db is not None:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self.db_path))
        self._db.row_factory = aiosqlite.Row

        if self.wal_mode:
            await self._db.execute("PRAGMA journal_mode=WAL")

        await self._db.executescript(_SCHEMA)
        await self._db.commit()
        logger.info("Initialized SQLite store at %s", self.db_path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Store not initialized. Call initialize() first.")
        return self._db

    async def get(self, key: str) -> Any | None:
        cursor = await self.db.execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return json.loads(row["value"])

    async def set(self, key: str, value: Any) -> None:
        await self.db.execute(_UPSERT, (key, json.dumps(value), _now()))
        await self.db.commit()

    async def delete(self, key: str) -> bool:
        cursor = await self.db.execute("DELETE FROM kv WHERE key = ?", (key,))
        await self.db.commit()
        return cursor.rowcount > 0

    async def keys(self, prefix: str = "") -> list[str]:
        cursor = await self.db.execute(
            "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        )
        rows = await cursor.fetchall()
        return [row["key"] for row in rows]

    async def write_batch(
        self,
        sets: Mapping[str, Any] | None = None,
        deletes: Sequence[str] = (),
    ) -> None:
        now = _now()
        # Serialize everything first so a bad value never leaves a half-written batch
        rows = [(key, json.dumps(value), now) for key, value in (sets or {}).items()]
        try:
            await self.db.executemany(_UPSERT, rows)
            for key in deletes:
                await self.db.execute("DELETE FROM kv WHERE key = ?", (key,))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def get_stats(self) -> dict[str, Any]:
        cursor = await self.db.execute("SELECT COUNT(*) FROM kv")
        row = await cursor.fetchone()
        return {"keys": row[0] if row else 0, "db_path": str(self.db_path)}


_UPSERT = """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
   ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at"""


def _now() -> str:
    return datetime.now(UTC).isoformat()
