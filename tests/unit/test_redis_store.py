# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the Redis client and the Redis idempotency store."""

import json
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from boardprep.core.config.settings import Settings
from boardprep.infrastructure.cache.idempotency_store import RedisIdempotencyStore
from boardprep.infrastructure.cache.redis_client import (
    RedisClient,
    RedisError,
    close_redis,
    get_redis,
    init_redis,
)
from boardprep.models.entities import IdempotencyErrorRecord
from boardprep.utils.datetime import format_iso
from fakes import FIXED_NOW


@pytest.fixture
def redis_mock() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def client(settings: Settings, redis_mock: AsyncMock) -> RedisClient:
    return RedisClient(settings, redis=redis_mock)


class TestRedisClient:
    """Tests for RedisClient."""

    @pytest.mark.asyncio
    async def test_set_if_absent_uses_nx_px(
        self, client: RedisClient, redis_mock: AsyncMock
    ) -> None:
        redis_mock.set.return_value = True

        claimed = await client.set_if_absent("idempotency:u:a:k", {"x": 1}, 5000)

        assert claimed is True
        redis_mock.set.assert_awaited_once_with(
            "boardprep:idempotency:u:a:k", json.dumps({"x": 1}), nx=True, px=5000
        )

    @pytest.mark.asyncio
    async def test_set_if_absent_existing_key(
        self, client: RedisClient, redis_mock: AsyncMock
    ) -> None:
        redis_mock.set.return_value = None

        assert await client.set_if_absent("k", "v", 0) is False
        assert redis_mock.set.await_args.kwargs["px"] == 1

    @pytest.mark.asyncio
    async def test_replace_existing_keeps_ttl(
        self, client: RedisClient, redis_mock: AsyncMock
    ) -> None:
        redis_mock.set.return_value = True

        assert await client.replace_existing("k", "v") is True
        redis_mock.set.assert_awaited_once_with("boardprep:k", "v", xx=True, keepttl=True)

    @pytest.mark.asyncio
    async def test_get_deserializes(self, client: RedisClient, redis_mock: AsyncMock) -> None:
        redis_mock.get.return_value = '{"a": [1, 2]}'

        assert await client.get("k") == {"a": [1, 2]}

    @pytest.mark.asyncio
    async def test_get_plain_string(self, client: RedisClient, redis_mock: AsyncMock) -> None:
        redis_mock.get.return_value = "not json"

        assert await client.get("k") == "not json"

    @pytest.mark.asyncio
    async def test_errors_are_wrapped(self, client: RedisClient, redis_mock: AsyncMock) -> None:
        redis_mock.get.side_effect = RedisConnectionError("down")

        with pytest.raises(RedisError) as exc_info:
            await client.get("k")

        assert "boardprep:k" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_not_connected(self, settings: Settings) -> None:
        client = RedisClient(settings)

        with pytest.raises(RedisError):
            await client.get("k")
        assert await client.ping() is False

    def test_get_redis_before_init(self) -> None:
        with pytest.raises(RedisError):
            get_redis()

    @pytest.mark.asyncio
    async def test_global_client_lifecycle(self, settings: Settings) -> None:
        """Test init_redis installs the shared client and close_redis removes it."""
        with patch.object(RedisClient, "connect", new=AsyncMock()):
            await init_redis(settings)

        assert isinstance(get_redis(), RedisClient)

        await close_redis()
        with pytest.raises(RedisError):
            get_redis()


def _stored(expires_in: timedelta, result=None, error=None) -> dict:
    return {
        "user_id": "user-1",
        "action": "practice.submit_answer",
        "key": "k1",
        "expires_at": format_iso(FIXED_NOW + expires_in),
        "result": result,
        "error": error,
    }


@pytest.fixture
def cache() -> MagicMock:
    cache = MagicMock(spec=RedisClient)
    cache.get = AsyncMock()
    cache.set_if_absent = AsyncMock()
    cache.replace_existing = AsyncMock()
    return cache


class TestRedisIdempotencyStore:
    """Tests for RedisIdempotencyStore."""

    @pytest.mark.asyncio
    async def test_claim_sets_record_with_ttl(self, cache: MagicMock) -> None:
        cache.set_if_absent.return_value = True
        store = RedisIdempotencyStore(cache)

        claimed = await store.claim(
            "user-1",
            "practice.submit_answer",
            "k1",
            FIXED_NOW + timedelta(seconds=90),
            FIXED_NOW,
        )

        assert claimed is True
        key, record, ttl_ms = cache.set_if_absent.await_args.args
        assert key == "idempotency:user-1:practice.submit_answer:k1"
        assert record["result"] is None
        assert record["error"] is None
        assert ttl_ms == 90_000

    @pytest.mark.asyncio
    async def test_find_pending(self, cache: MagicMock) -> None:
        cache.get.return_value = _stored(timedelta(minutes=1))
        store = RedisIdempotencyStore(cache)

        record = await store.find("user-1", "practice.submit_answer", "k1", FIXED_NOW)

        assert record.is_pending is True
        assert record.expires_at == FIXED_NOW + timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_find_with_error(self, cache: MagicMock) -> None:
        cache.get.return_value = _stored(
            timedelta(minutes=1), error={"code": "CONFLICT", "message": "ended"}
        )
        store = RedisIdempotencyStore(cache)

        record = await store.find("user-1", "practice.submit_answer", "k1", FIXED_NOW)

        assert record.error == IdempotencyErrorRecord("CONFLICT", "ended")

    @pytest.mark.asyncio
    async def test_find_expired_or_missing(self, cache: MagicMock) -> None:
        store = RedisIdempotencyStore(cache)

        cache.get.return_value = _stored(timedelta(seconds=-1))
        assert await store.find("user-1", "practice.submit_answer", "k1", FIXED_NOW) is None

        cache.get.return_value = None
        assert await store.find("user-1", "practice.submit_answer", "k1", FIXED_NOW) is None

    @pytest.mark.asyncio
    async def test_store_result_replaces_record(self, cache: MagicMock) -> None:
        cache.get.return_value = _stored(timedelta(minutes=1))
        cache.replace_existing.return_value = True
        store = RedisIdempotencyStore(cache)

        await store.store_result("user-1", "practice.submit_answer", "k1", {"attempt_id": "a1"})

        key, record = cache.replace_existing.await_args.args
        assert key == "idempotency:user-1:practice.submit_answer:k1"
        assert record["result"] == {"attempt_id": "a1"}
        assert record["error"] is None

    @pytest.mark.asyncio
    async def test_store_error_on_vanished_key(self, cache: MagicMock) -> None:
        """Test storing an outcome for an expired key is skipped."""
        cache.get.return_value = None
        store = RedisIdempotencyStore(cache)

        await store.store_error(
            "user-1",
            "practice.submit_answer",
            "k1",
            IdempotencyErrorRecord("NOT_FOUND", "gone"),
        )

        cache.replace_existing.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_prune_is_noop(self, cache: MagicMock) -> None:
        store = RedisIdempotencyStore(cache)

        assert await store.prune_expired_before(FIXED_NOW, 100) == 0

    @pytest.mark.asyncio
    async def test_store_error_keeps_field_errors(self, cache: MagicMock) -> None:
        cache.get.return_value = _stored(timedelta(minutes=1))
        cache.replace_existing.return_value = True
        store = RedisIdempotencyStore(cache)

        await store.store_error(
            "user-1",
            "practice.start_session",
            "k1",
            IdempotencyErrorRecord(
                "VALIDATION_ERROR", "Invalid input", {"count": ["Must be at most 200"]}
            ),
        )

        _, record = cache.replace_existing.await_args.args
        assert record["error"] == {
            "code": "VALIDATION_ERROR",
            "message": "Invalid input",
            "field_errors": {"count": ["Must be at most 200"]},
        }

        cache.get.return_value = record
        found = await store.find("user-1", "practice.start_session", "k1", FIXED_NOW)
        assert found.error.field_errors == {"count": ["Must be at most 200"]}
