"""Tests for blob store backends, storage keys and backend selection."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from habit_coach.core.config import Settings
from habit_coach.core.db_client import SqliteBlobStore
from habit_coach.core.errors import InvalidOwnerError, StorageUnavailableError
from habit_coach.core.memory_store import InMemoryBlobStore
from habit_coach.core.redis_client import RedisBlobStore, with_retry
from habit_coach.core.storage import BlobStore, get_blob_store, habits_key, logs_key, validate_owner_id
from habit_coach.services.habit_service import HabitStore
from tests.unit.mocks import OWNER, TODAY


@pytest.mark.unit
class TestStorageKeys:
    def test_keys_are_owner_scoped(self):
        assert habits_key("user-123") == "habits:user-123"
        assert logs_key("user-123") == "habit_logs:user-123"

    @pytest.mark.parametrize("owner_id", ["", "   ", None, 42])
    def test_invalid_owner(self, owner_id):
        with pytest.raises(InvalidOwnerError):
            validate_owner_id(owner_id)
        with pytest.raises(InvalidOwnerError):
            habits_key(owner_id)


@pytest.mark.unit
class TestInMemoryBlobStore:
    async def test_get_set_remove(self):
        blobs = InMemoryBlobStore()

        assert await blobs.get("habits:a") is None
        await blobs.set("habits:a", b"[]")
        assert await blobs.get("habits:a") == b"[]"
        await blobs.remove("habits:a")
        await blobs.remove("habits:a")
        assert await blobs.get("habits:a") is None

    async def test_set_replaces_whole_value(self):
        blobs = InMemoryBlobStore()
        await blobs.set("k", b"first value")
        await blobs.set("k", b"2")

        assert await blobs.get("k") == b"2"

    async def test_ping(self):
        assert await InMemoryBlobStore().ping() is True

    async def test_health_status(self):
        blobs = InMemoryBlobStore()
        await blobs.set("k", b"v")

        status = blobs.get_health_status()

        assert status["backend"] == "memory"
        assert status["entries"] == 1
        assert status["total_operations"] == 1

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryBlobStore(), BlobStore)


@pytest.mark.unit
class TestSqliteBlobStore:
    async def test_round_trip_and_persistence(self, tmp_path):
        path = str(tmp_path / "nested" / "habits.db")
        blobs = SqliteBlobStore(path)
        await blobs.set("habits:a", b'[{"id": "1"}]')
        await blobs.set("habits:a", b"[]")
        await blobs.close()

        reopened = SqliteBlobStore(path)
        try:
            assert await reopened.get("habits:a") == b"[]"
            assert await reopened.get("habits:b") is None
            await reopened.remove("habits:a")
            assert await reopened.get("habits:a") is None
        finally:
            await reopened.close()

    async def test_habit_store_on_sqlite(self, tmp_path):
        blobs = SqliteBlobStore(str(tmp_path / "habits.db"))
        store = HabitStore(blobs, clock=lambda: TODAY)
        try:
            habit = await store.create_habit(OWNER, {"name": "Read"})
            await store.toggle_completion(OWNER, habit.id, TODAY, True)

            habits = await store.list_habits(OWNER)
            assert habits[0].completed_dates == [TODAY]
            assert habits[0].streak == 1
        finally:
            await blobs.close()

    async def test_unopenable_path_raises_storage_unavailable(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        blobs = SqliteBlobStore(str(blocker / "habits.db"))

        with pytest.raises(StorageUnavailableError):
            await blobs.get("habits:a")

    async def test_close_without_connection(self, tmp_path):
        await SqliteBlobStore(str(tmp_path / "habits.db")).close()

    async def test_ping_and_health_status(self, tmp_path):
        blobs = SqliteBlobStore(str(tmp_path / "habits.db"))
        assert blobs.get_health_status()["connected"] is False
        try:
            assert await blobs.ping() is True
            status = blobs.get_health_status()
            assert status["backend"] == "sqlite"
            assert status["connected"] is True
        finally:
            await blobs.close()

    async def test_ping_on_unopenable_path(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        assert await SqliteBlobStore(str(blocker / "habits.db")).ping() is False


@pytest.mark.unit
class TestRedisBlobStore:
    @pytest.fixture
    def redis_client(self) -> MagicMock:
        client = MagicMock()
        client.get = AsyncMock(return_value=None)
        client.set = AsyncMock()
        client.delete = AsyncMock()
        client.ping = AsyncMock(return_value=True)
        client.aclose = AsyncMock()
        return client

    async def test_get_set_remove_delegate(self, redis_client):
        blobs = RedisBlobStore("redis://localhost:6379", client=redis_client)
        redis_client.get.return_value = b"[]"

        assert await blobs.get("habits:a") == b"[]"
        await blobs.set("habits:a", b"[1]")
        await blobs.remove("habits:a")

        redis_client.set.assert_awaited_once_with("habits:a", b"[1]")
        redis_client.delete.assert_awaited_once_with("habits:a")
        assert blobs.get_health_status()["total_operations"] == 3

    async def test_get_encodes_string_responses(self, redis_client):
        redis_client.get.return_value = "[]"
        blobs = RedisBlobStore("redis://localhost:6379", client=redis_client)

        assert await blobs.get("habits:a") == b"[]"

    async def test_transient_failure_is_retried(self, redis_client):
        redis_client.get.side_effect = [RedisConnectionError("blip"), b"[]"]
        blobs = RedisBlobStore("redis://localhost:6379", client=redis_client)

        assert await blobs.get("habits:a") == b"[]"
        assert redis_client.get.await_count == 2

    async def test_persistent_failure_raises_storage_unavailable(self, redis_client):
        redis_client.set.side_effect = RedisConnectionError("down")
        blobs = RedisBlobStore("redis://localhost:6379", client=redis_client)

        with pytest.raises(StorageUnavailableError, match="Redis unavailable"):
            await blobs.set("habits:a", b"[]")

        assert redis_client.set.await_count == 3
        assert blobs.get_health_status()["failure_count"] == 1

    async def test_ping(self, redis_client):
        blobs = RedisBlobStore("redis://localhost:6379", client=redis_client)
        assert await blobs.ping() is True

        redis_client.ping.side_effect = RedisConnectionError("down")
        assert await blobs.ping() is False

    async def test_close(self, redis_client):
        await RedisBlobStore("redis://localhost:6379", client=redis_client).close()

        redis_client.aclose.assert_awaited_once()

    async def test_with_retry_uses_backoff(self):
        calls = 0

        @with_retry(max_retries=2, base_delay=0)
        async def flaky() -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RedisConnectionError("blip")
            return "ok"

        assert await flaky() == "ok"
        assert calls == 2


@pytest.mark.unit
class TestGetBlobStore:
    def test_memory_by_default(self):
        assert isinstance(get_blob_store(Settings(storage_backend="memory")), InMemoryBlobStore)

    def test_sqlite(self, tmp_path):
        config = Settings(storage_backend="sqlite", sqlite_db_path=str(tmp_path / "habits.db"))

        assert isinstance(get_blob_store(config), SqliteBlobStore)

    def test_redis(self):
        config = Settings(storage_backend="redis", redis_url="redis://localhost:6379/0")

        assert isinstance(get_blob_store(config), RedisBlobStore)

    def test_redis_requires_url(self):
        config = Settings(storage_backend="redis", redis_url=None)

        with pytest.raises(ValueError, match="REDIS_URL"):
            get_blob_store(config)
