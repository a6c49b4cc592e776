# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cache infrastructure using Redis.

This package provides the Redis client and the Redis-backed idempotency
key store. Keys are namespaced by the configured prefix: {key_prefix}:*

Example:
    from boardprep.infrastructure.cache import RedisIdempotencyStore, init_redis, get_redis

    # Initialize at application startup
    await init_redis(settings)

    store = RedisIdempotencyStore(get_redis())

    # Cleanup at shutdown
    await close_redis()
"""

from boardprep.infrastructure.cache.idempotency_store import RedisIdempotencyStore
from boardprep.infrastructure.cache.redis_client import (
    RedisClient,
    RedisError,
    close_redis,
    get_redis,
    init_redis,
)

__all__ = [
    "RedisClient",
    "RedisError",
    "RedisIdempotencyStore",
    "close_redis",
    "get_redis",
    "init_redis",
]
