"""In-memory blob store."""

import logging
import threading
import time
from typing import Any


logger = logging.getLogger(__name__)


class InMemoryBlobStore:
    """Thread-safe in-memory blob store for development and tests."""

    def __init__(self) -> None:
        """Initialize in-memory blob store."""
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

        # Health tracking
        self._last_successful_operation: float | None = None
        self._total_operations = 0

    def get_health_status(self) -> dict[str, Any]:
        """Get store health status.

        Returns:
            Dict with health status including last successful operation and total operations
        """
        return {
            "backend": "memory",
            "connected": True,
            "last_successful_operation": self._last_successful_operation,
            "total_operations": self._total_operations,
            "entries": len(self._data),
        }

    def _record_success(self) -> None:
        """Record successful store operation."""
        self._last_successful_operation = time.time()
        self._total_operations += 1

    async def get(self, key: str) -> bytes | None:
        """Get blob by key.

        Args:
            key: Storage key

        Returns:
            Stored blob or None if absent
        """
        with self._lock:
            value = self._data.get(key)
            self._record_success()
            return value

    async def set(self, key: str, value: bytes) -> None:
        """Store a blob under key, replacing any previous value.

        Args:
            key: Storage key
            value: Serialized snapshot
        """
        with self._lock:
            self._data[key] = bytes(value)
            self._record_success()
            logger.debug("Stored key: %s (%d bytes)", key, len(value))

    async def remove(self, key: str) -> None:
        """Remove a key if present.

        Args:
            key: Storage key
        """
        with self._lock:
            self._data.pop(key, None)
            self._record_success()

    async def ping(self) -> bool:
        """Ping store to check availability.

        Returns:
            True (always available for in-memory store)
        """
        return True
