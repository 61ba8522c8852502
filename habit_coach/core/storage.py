"""Blob store protocol, owner-scoped storage keys and backend selection."""

import logging
from typing import Any, Protocol, runtime_checkable

from habit_coach.core.config import Constants, Settings, settings
from habit_coach.core.errors import InvalidOwnerError


logger = logging.getLogger(__name__)


@runtime_checkable
class BlobStore(Protocol):
    """Whole-value key-value storage. No partial writes, no compare-and-swap."""

    async def get(self, key: str) -> bytes | None:
        """Return the stored blob or None when the key is absent."""
        ...

    async def set(self, key: str, value: bytes) -> None:
        """Replace the blob stored under key."""
        ...

    async def remove(self, key: str) -> None:
        """Remove the key. Removing an absent key is a no-op."""
        ...

    async def ping(self) -> bool:
        """Whether the backing medium answers. Never raises."""
        ...

    def get_health_status(self) -> dict[str, Any]:
        """Backend name plus connection and operation counters."""
        ...


def validate_owner_id(owner_id: str | None) -> str:
    """Return the owner id, raising InvalidOwnerError when it is missing or blank."""
    if not isinstance(owner_id, str) or not owner_id.strip():
        raise InvalidOwnerError("An owner id is required for habit storage")
    return owner_id


def habits_key(owner_id: str | None) -> str:
    """Storage key for an owner's habit collection."""
    return f"{Constants.HABITS_KEY_PREFIX}:{validate_owner_id(owner_id)}"


def logs_key(owner_id: str | None) -> str:
    """Storage key for an owner's completion log."""
    return f"{Constants.LOGS_KEY_PREFIX}:{validate_owner_id(owner_id)}"


def get_blob_store(config: Settings | None = None) -> BlobStore:
    """Build the blob store selected by ``storage_backend``.

    Args:
        config: Settings to read from (defaults to the global settings)

    Returns:
        A BlobStore implementation
    """
    config = config or settings

    if config.storage_backend == "redis":
        from habit_coach.core.redis_client import RedisBlobStore

        redis_url = config.require_credential("redis_url", "Redis")
        logger.info("Using Redis blob store")
        return RedisBlobStore(redis_url)

    if config.storage_backend == "sqlite":
        from habit_coach.core.db_client import SqliteBlobStore

        logger.info("Using SQLite blob store", extra={"db_path": config.sqlite_db_path})
        return SqliteBlobStore(config.sqlite_db_path)

    from habit_coach.core.memory_store import InMemoryBlobStore

    logger.info("Using in-memory blob store")
    return InMemoryBlobStore()
