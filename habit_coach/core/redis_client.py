"""Redis-backed blob store."""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from functools import wraps
from typing import Any, TypeVar

from redis.asyncio import Redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

from habit_coach.core.config import Constants
from habit_coach.core.errors import StorageUnavailableError


logger = logging.getLogger(__name__)

# Type variable for generic retry decorator
T = TypeVar("T")


def with_retry(
    max_retries: int = Constants.REDIS_MAX_RETRIES,
    base_delay: float = Constants.REDIS_RETRY_BASE_DELAY_SECONDS,
) -> Callable[[Callable[..., Coroutine[Any, Any, T]]], Callable[..., Coroutine[Any, Any, T]]]:
    """Decorator to retry async Redis calls with exponential backoff.

    After the last attempt the RedisError is converted to StorageUnavailableError.

    Args:
        max_retries: Maximum number of attempts (default: 3)
        base_delay: Base delay in seconds for exponential backoff (default: 0.1)

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., Coroutine[Any, Any, T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:  # noqa: ANN401
            last_exception: RedisError | None = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except RedisError as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Redis operation failed (attempt %d/%d): %s. Retrying in %.2fs",
                            attempt + 1,
                            max_retries,
                            e,
                            delay,
                        )
                        await asyncio.sleep(delay)
                    else:
                        logger.error(
                            "Redis operation failed after %d attempts: %s",
                            max_retries,
                            e,
                        )
            msg = f"Redis unavailable after {max_retries} attempts: {last_exception}"
            raise StorageUnavailableError(msg) from last_exception

        return wrapper

    return decorator


class RedisBlobStore:
    """Async Redis blob store with connection pooling."""

    def __init__(self, redis_url: str, *, client: Redis | None = None) -> None:
        """Initialize Redis blob store.

        Args:
            redis_url: Redis connection URL
            client: Pre-built client (used by tests)
        """
        self._redis_url = redis_url
        self._pool: ConnectionPool | None = None

        # Health tracking
        self._last_successful_operation: datetime | None = None
        self._failure_count = 0
        self._total_operations = 0

        if client is not None:
            self._client = client
        else:
            # Blobs are raw bytes, so responses are not decoded
            self._pool = ConnectionPool.from_url(
                redis_url,
                decode_responses=False,
                max_connections=Constants.REDIS_MAX_CONNECTIONS,
            )
            self._client = Redis(connection_pool=self._pool)
        logger.info("Redis blob store initialized")

    def get_health_status(self) -> dict[str, Any]:
        """Get Redis health status.

        Returns:
            Dict with last successful operation, failure count, and total operations
        """
        return {
            "backend": "redis",
            "last_successful_operation": self._last_successful_operation.isoformat()
            if self._last_successful_operation
            else None,
            "failure_count": self._failure_count,
            "total_operations": self._total_operations,
        }

    def _record_success(self) -> None:
        """Record successful Redis operation."""
        self._last_successful_operation = datetime.now(UTC)
        self._total_operations += 1

    def _record_failure(self) -> None:
        """Record failed Redis operation."""
        self._failure_count += 1
        self._total_operations += 1

    async def get(self, key: str) -> bytes | None:
        """Get blob from Redis.

        Args:
            key: Storage key

        Returns:
            Stored blob or None if absent

        Raises:
            StorageUnavailableError: If Redis keeps failing after retries
        """

        @with_retry()
        async def _get_operation() -> bytes | None:
            return await self._client.get(key)

        try:
            value = await _get_operation()
        except StorageUnavailableError:
            self._record_failure()
            raise
        self._record_success()
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    async def set(self, key: str, value: bytes) -> None:
        """Store blob in Redis.

        Args:
            key: Storage key
            value: Serialized snapshot

        Raises:
            StorageUnavailableError: If Redis keeps failing after retries
        """

        @with_retry()
        async def _set_operation() -> None:
            await self._client.set(key, value)

        try:
            await _set_operation()
        except StorageUnavailableError:
            self._record_failure()
            raise
        self._record_success()
        logger.debug("Stored key: %s (%d bytes)", key, len(value))

    async def remove(self, key: str) -> None:
        """Delete key from Redis.

        Args:
            key: Storage key

        Raises:
            StorageUnavailableError: If Redis keeps failing after retries
        """

        @with_retry()
        async def _remove_operation() -> None:
            await self._client.delete(key)

        try:
            await _remove_operation()
        except StorageUnavailableError:
            self._record_failure()
            raise
        self._record_success()

    async def ping(self) -> bool:
        """Ping Redis to check connection.

        Returns:
            True if Redis is responsive, False otherwise
        """
        try:
            result = await self._client.ping()  # type: ignore[misc]
            return bool(result)
        except RedisError as e:
            logger.warning("Redis PING failed: %s", e)
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        await self._client.aclose()
        logger.info("Redis blob store closed")
