# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis client for the idempotency key store.

This module provides an async Redis client wrapper. All keys are prefixed
with the configured namespace ({key_prefix}:) so several deployments can
share one Redis database.

Example:
    from boardprep.infrastructure.cache import init_redis, get_redis

    # Initialize at startup
    await init_redis(settings)

    # Use the client
    redis = get_redis()
    claimed = await redis.set_if_absent("idempotency:u1:submit:k1", record, 86_400_000)
"""

import json
from typing import TYPE_CHECKING, Any, Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError as BaseRedisError

if TYPE_CHECKING:
    from boardprep.core.config.settings import Settings

# Module-level state
_redis_client: Optional["RedisClient"] = None


class RedisError(Exception):
    """Exception raised for Redis operation failures.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying Redis error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the Redis error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class RedisClient:
    """Async Redis client with namespaced keys.

    This client wraps the redis-py async client and provides:
    - Connection pooling
    - Namespace key prefixing
    - JSON serialization/deserialization
    - Conditional writes used for atomic claims

    Example:
        client = RedisClient(settings)
        await client.connect()

        if await client.set_if_absent("lock:abc", {"owner": "u1"}, 5000):
            ...

        await client.close()
    """

    def __init__(self, settings: "Settings", redis: Optional[Redis] = None) -> None:
        """Initialize the Redis client.

        Args:
            settings: Application settings containing Redis configuration.
            redis: An already connected client, used instead of connect().
        """
        self._settings = settings
        self._pool: Optional[ConnectionPool] = None
        self._redis: Optional[Redis] = redis

    async def connect(self) -> None:
        """Create the Redis connection pool.

        Raises:
            RedisError: If connection fails.
        """
        try:
            self._pool = ConnectionPool.from_url(
                self._settings.redis.url,
                max_connections=self._settings.redis.max_connections,
                decode_responses=True,
            )
            self._redis = Redis(connection_pool=self._pool)

            # Verify connection
            await self._redis.ping()
        except BaseRedisError as e:
            raise RedisError("Failed to connect to Redis", e) from e

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None

    def _ensure_connected(self) -> Redis:
        """Ensure the client is connected.

        Raises:
            RedisError: If not connected.
        """
        if self._redis is None:
            raise RedisError("Redis client not connected. Call connect() first.")
        return self._redis

    def _namespaced_key(self, key: str) -> str:
        return f"{self._settings.redis.key_prefix}:{key}"

    def _serialize(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False, default=str)

    def _deserialize(self, value: Optional[str]) -> Any:
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    async def get(self, key: str) -> Any:
        """Get a value by key.

        Returns:
            The deserialized value or None if not found.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        full_key = self._namespaced_key(key)
        try:
            value = await redis.get(full_key)
            return self._deserialize(value)
        except BaseRedisError as e:
            raise RedisError(f"Failed to get key: {full_key}", e) from e

    async def set_if_absent(self, key: str, value: Any, expire_ms: int) -> bool:
        """Atomically set a key only if it does not exist (SET NX PX).

        Args:
            key: The key.
            value: The value (JSON serialized if not a string).
            expire_ms: Expiration in milliseconds.

        Returns:
            True if the key was set, False if it already existed.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        full_key = self._namespaced_key(key)
        try:
            result = await redis.set(
                full_key, self._serialize(value), nx=True, px=max(1, expire_ms)
            )
            return bool(result)
        except BaseRedisError as e:
            raise RedisError(f"Failed to claim key: {full_key}", e) from e

    async def replace_existing(self, key: str, value: Any) -> bool:
        """Overwrite a key only if it exists, keeping its TTL (SET XX KEEPTTL).

        Returns:
            True if the key was overwritten, False if it did not exist.

        Raises:
            RedisError: If the operation fails.
        """
        redis = self._ensure_connected()
        full_key = self._namespaced_key(key)
        try:
            result = await redis.set(
                full_key, self._serialize(value), xx=True, keepttl=True
            )
            return bool(result)
        except BaseRedisError as e:
            raise RedisError(f"Failed to replace key: {full_key}", e) from e

    async def ping(self) -> bool:
        """Check if Redis is reachable.

        Returns:
            True if Redis responds to ping, False otherwise.
        """
        try:
            redis = self._ensure_connected()
            await redis.ping()
            return True
        except (RedisError, BaseRedisError):
            return False


# ========== Module-level functions ==========


async def init_redis(settings: "Settings") -> None:
    """Initialize the global Redis client.

    This should be called once at application startup.

    Raises:
        RedisError: If connection fails.
    """
    global _redis_client

    _redis_client = RedisClient(settings)
    await _redis_client.connect()


async def close_redis() -> None:
    """Close the global Redis client.

    This should be called at application shutdown.
    """
    global _redis_client

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None


def get_redis() -> RedisClient:
    """Get the global Redis client.

    Raises:
        RedisError: If Redis has not been initialized.
    """
    if _redis_client is None:
        raise RedisError("Redis not initialized. Call init_redis() first.")
    return _redis_client
