"""SQLite blob store using a single key/value table."""

import asyncio
import logging
from pathlib import Path
from typing import Any

import aiosqlite

from habit_coach.core.errors import StorageUnavailableError


logger = logging.getLogger(__name__)

_CREATE_TABLE = "CREATE TABLE IF NOT EXISTS blobs (key TEXT PRIMARY KEY, value BLOB NOT NULL)"


def get_db_path(db_path: str) -> Path:
    """Get the resolved SQLite database file path."""
    return Path(db_path).resolve()


class SqliteBlobStore:
    """aiosqlite-backed blob store. Each set replaces the whole row in one statement."""

    def __init__(self, db_path: str) -> None:
        """Initialize the store. The connection is opened lazily."""
        self._path = get_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._conn_lock = asyncio.Lock()

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create the cached connection and ensure the schema exists."""
        if self._conn is not None:
            return self._conn

        async with self._conn_lock:
            # Double-check after acquiring lock
            if self._conn is not None:
                return self._conn

            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                conn = await aiosqlite.connect(str(self._path))
                await conn.execute("PRAGMA journal_mode = WAL")
                await conn.execute(_CREATE_TABLE)
                await conn.commit()
            except (aiosqlite.Error, OSError) as e:
                logger.error("sqlite_connect_failed", extra={"db_path": str(self._path), "error": str(e)})
                raise StorageUnavailableError(f"Failed to open SQLite store at {self._path}: {e}") from e

            self._conn = conn
            logger.info("Created new SQLite connection", extra={"db_path": str(self._path)})
            return conn

    async def get(self, key: str) -> bytes | None:
        """Fetch the blob stored under key, or None."""
        conn = await self._get_connection()
        try:
            cursor = await conn.execute("SELECT value FROM blobs WHERE key = ?", (key,))
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error("sqlite_get_failed", extra={"key": key, "error": str(e)})
            raise StorageUnavailableError(f"Failed to read {key}: {e}") from e

        if row is None:
            return None
        return bytes(row[0])

    async def set(self, key: str, value: bytes) -> None:
        """Insert or replace the blob stored under key."""
        conn = await self._get_connection()
        try:
            await conn.execute(
                "INSERT INTO blobs (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error("sqlite_set_failed", extra={"key": key, "error": str(e)})
            raise StorageUnavailableError(f"Failed to write {key}: {e}") from e

        logger.debug("Stored key", extra={"key": key, "size": len(value)})

    async def remove(self, key: str) -> None:
        """Delete the row for key, if any."""
        conn = await self._get_connection()
        try:
            await conn.execute("DELETE FROM blobs WHERE key = ?", (key,))
            await conn.commit()
        except aiosqlite.Error as e:
            logger.error("sqlite_remove_failed", extra={"key": key, "error": str(e)})
            raise StorageUnavailableError(f"Failed to remove {key}: {e}") from e

    def get_health_status(self) -> dict[str, Any]:
        """Get store health status."""
        return {
            "backend": "sqlite",
            "db_path": str(self._path),
            "connected": self._conn is not None,
        }

    async def ping(self) -> bool:
        """Run a trivial query to check the database answers.

        Returns:
            True if SQLite is responsive, False otherwise
        """
        try:
            conn = await self._get_connection()
            await conn.execute("SELECT 1")
        except (aiosqlite.Error, StorageUnavailableError) as e:
            logger.warning("SQLite ping failed: %s", e)
            return False
        return True

    async def close(self) -> None:
        """Close the cached connection."""
        if self._conn is None:
            return
        async with self._conn_lock:
            if self._conn is not None:
                await self._conn.close()
                self._conn = None
                logger.info("Closed SQLite connection", extra={"db_path": str(self._path)})
