# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis implementation of the idempotency key repository.

One Redis string per (user_id, action, key) holds the JSON record. The
claim is a single SET NX PX, so concurrent requests with the same key are
serialized by Redis itself. Redis expires records natively, which makes a
claim on an expired key succeed and leaves nothing to prune.
"""

import logging
from datetime import datetime
from typing import Any

from boardprep.core.ports.repositories import IdempotencyKeyRepository
from boardprep.infrastructure.cache.redis_client import RedisClient
from boardprep.models.entities import IdempotencyErrorRecord, IdempotencyKeyRecord
from boardprep.utils.datetime import format_iso, parse_iso, to_utc

logger = logging.getLogger(__name__)


class RedisIdempotencyStore(IdempotencyKeyRepository):
    """Idempotency records stored in Redis.

    Key layout: {key_prefix}:idempotency:{user_id}:{action}:{key}
    """

    KEY_NAMESPACE = "idempotency"

    def __init__(self, client: RedisClient) -> None:
        self.client = client

    def _record_key(self, user_id: str, action: str, key: str) -> str:
        return f"{self.KEY_NAMESPACE}:{user_id}:{action}:{key}"

    async def claim(
        self,
        user_id: str,
        action: str,
        key: str,
        expires_at: datetime,
        now: datetime,
    ) -> bool:
        ttl_ms = int((to_utc(expires_at) - to_utc(now)).total_seconds() * 1000)
        record = {
            "user_id": user_id,
            "action": action,
            "key": key,
            "expires_at": format_iso(expires_at),
            "result": None,
            "error": None,
        }
        return await self.client.set_if_absent(
            self._record_key(user_id, action, key), record, ttl_ms
        )

    async def find(
        self, user_id: str, action: str, key: str, now: datetime
    ) -> IdempotencyKeyRecord | None:
        raw = await self.client.get(self._record_key(user_id, action, key))
        if not isinstance(raw, dict):
            return None

        record = _to_record(raw)
        if record.expires_at <= to_utc(now):
            return None
        return record

    async def store_result(self, user_id: str, action: str, key: str, result: Any) -> None:
        await self._update(user_id, action, key, result=result, error=None)

    async def store_error(
        self, user_id: str, action: str, key: str, error: IdempotencyErrorRecord
    ) -> None:
        await self._update(
            user_id,
            action,
            key,
            result=None,
            error={
                "code": error.code,
                "message": error.message,
                "field_errors": error.field_errors,
            },
        )

    async def prune_expired_before(self, before: datetime, limit: int) -> int:
        # Redis evicts expired keys itself
        return 0

    async def _update(
        self,
        user_id: str,
        action: str,
        key: str,
        result: Any,
        error: dict[str, Any] | None,
    ) -> None:
        record_key = self._record_key(user_id, action, key)
        current = await self.client.get(record_key)
        if not isinstance(current, dict):
            logger.warning(
                "Idempotency record expired before its outcome was stored: action=%s",
                action,
            )
            return

        current["result"] = result
        current["error"] = error
        if not await self.client.replace_existing(record_key, current):
            logger.warning(
                "Idempotency record expired before its outcome was stored: action=%s",
                action,
            )


def _to_record(raw: dict[str, Any]) -> IdempotencyKeyRecord:
    error = raw.get("error")
    return IdempotencyKeyRecord(
        user_id=raw["user_id"],
        action=raw["action"],
        key=raw["key"],
        expires_at=parse_iso(raw["expires_at"]),
        result=raw.get("result"),
        error=(
            IdempotencyErrorRecord(
                code=error["code"],
                message=error["message"],
                field_errors=error.get("field_errors"),
            )
            if error
            else None
        ),
    )
