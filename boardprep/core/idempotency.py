# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""At-most-once execution of mutating actions.

The IdempotencyGuard scopes an action to a caller-supplied key. The first
request that claims (user_id, action, key) executes the action and stores
its outcome; any other request bearing the same key replays that outcome
instead of executing again. A failed execution stores its error, so a retry
surfaces the same failure rather than re-running a partially applied action.

Claims are atomic in the IdempotencyKeyRepository. The guard holds no
in-process lock, so the guarantee extends across processes and replicas.

Example:
    >>> guard = IdempotencyGuard(redis_store)
    >>> result = await guard.run(
    ...     user_id="user-1",
    ...     action="practice.submit_answer",
    ...     key=request.idempotency_key,
    ...     execute=lambda: service.submit_answer("user-1", request),
    ...     parse_result=SubmitAnswerResponse.model_validate,
    ... )
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any, TypeVar

from pydantic_core import to_jsonable_python

from boardprep.core.config.settings import IdempotencySettings
from boardprep.core.errors import (
    ApplicationError,
    ConflictError,
    ErrorCode,
    InternalError,
    from_code,
)
from boardprep.core.ports.repositories import IdempotencyKeyRepository
from boardprep.models.entities import IdempotencyErrorRecord, IdempotencyKeyRecord
from boardprep.utils.datetime import utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

INTERNAL_ERROR_MESSAGE = "Internal error"


class IdempotencyGuard:
    """Claim-once, execute-once wrapper around mutating use cases.

    Attributes:
        repository: Store of idempotency key records.
        settings: TTL, polling and truncation limits.
    """

    def __init__(
        self,
        repository: IdempotencyKeyRepository,
        settings: IdempotencySettings | None = None,
        now: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the guard.

        Args:
            repository: Store of idempotency key records.
            settings: Guard settings. Defaults are used when omitted.
            now: Clock returning timezone-aware UTC datetimes.
            sleep: Coroutine used between polls.
        """
        self.repository = repository
        self.settings = settings or IdempotencySettings()
        self._now = now
        self._sleep = sleep

    async def run(
        self,
        user_id: str,
        action: str,
        key: str,
        execute: Callable[[], Awaitable[T]],
        parse_result: Callable[[Any], T],
    ) -> T:
        """Execute an action at most once per (user_id, action, key).

        Args:
            user_id: Owner of the key.
            action: Action name; keys are scoped per action.
            key: Caller-supplied idempotency key.
            execute: Coroutine factory performing the action.
            parse_result: Rebuilds a result from its stored JSON form.

        Returns:
            The result of the single execution, fresh or replayed.

        Raises:
            ApplicationError: The stored or raised application error.
            ConflictError: If another execution did not finish in time.
            InternalError: If a stored result cannot be parsed.
        """
        await self._prune_expired()

        if await self._claim(user_id, action, key):
            return await self._execute_and_store(user_id, action, key, execute)

        return await self._await_stored_outcome(
            user_id, action, key, execute, parse_result
        )

    async def _prune_expired(self) -> None:
        if self.settings.prune_batch_limit <= 0:
            return
        try:
            await self.repository.prune_expired_before(
                self._now(), self.settings.prune_batch_limit
            )
        except Exception as e:
            logger.warning("Failed to prune expired idempotency keys: %s", str(e))

    async def _claim(self, user_id: str, action: str, key: str) -> bool:
        now = self._now()
        expires_at = now + timedelta(seconds=self.settings.ttl_seconds)
        return await self.repository.claim(user_id, action, key, expires_at, now)

    async def _execute_and_store(
        self,
        user_id: str,
        action: str,
        key: str,
        execute: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            result = await execute()
            # A failed store must not leave the claim pending until it expires
            await self.repository.store_result(
                user_id, action, key, to_jsonable_python(result)
            )
        except ApplicationError as e:
            await self._store_error(
                user_id,
                action,
                key,
                IdempotencyErrorRecord(e.code.value, e.message, e.field_errors),
            )
            raise
        except Exception:
            await self._store_error(
                user_id,
                action,
                key,
                IdempotencyErrorRecord(
                    ErrorCode.INTERNAL_ERROR.value, INTERNAL_ERROR_MESSAGE
                ),
            )
            raise

        return result

    async def _store_error(
        self,
        user_id: str,
        action: str,
        key: str,
        error: IdempotencyErrorRecord,
    ) -> None:
        limit = self.settings.error_message_limit
        truncated = IdempotencyErrorRecord(
            error.code, error.message[:limit], error.field_errors
        )
        try:
            await self.repository.store_error(user_id, action, key, truncated)
        except Exception as e:
            # The action's own error is what the caller must see
            logger.error(
                "Failed to store idempotency error for action %s: %s", action, str(e)
            )

    async def _await_stored_outcome(
        self,
        user_id: str,
        action: str,
        key: str,
        execute: Callable[[], Awaitable[T]],
        parse_result: Callable[[Any], T],
    ) -> T:
        polls = max(
            1,
            math.ceil(
                self.settings.max_wait_seconds / self.settings.poll_interval_seconds
            ),
        )
        reclaimed = False

        for attempt in range(polls + 1):
            record = await self.repository.find(user_id, action, key, self._now())

            if record is None:
                # Expired or removed between our claim and lookup
                if not reclaimed:
                    reclaimed = True
                    if await self._claim(user_id, action, key):
                        return await self._execute_and_store(
                            user_id, action, key, execute
                        )
            elif not record.is_pending:
                return self._replay(record, parse_result)

            if attempt < polls:
                await self._sleep(self.settings.poll_interval_seconds)

        logger.warning(
            "Idempotent action %s still in progress after %.2fs",
            action,
            self.settings.max_wait_seconds,
        )
        raise ConflictError("Request is already in progress")

    def _replay(
        self, record: IdempotencyKeyRecord, parse_result: Callable[[Any], T]
    ) -> T:
        if record.error is not None:
            try:
                code = ErrorCode(record.error.code)
            except ValueError:
                code = ErrorCode.INTERNAL_ERROR
            raise from_code(code, record.error.message, record.error.field_errors)

        try:
            return parse_result(record.result)
        except (ValueError, TypeError) as e:
            logger.error(
                "Stored idempotency result for action %s is invalid: %s",
                record.action,
                str(e),
            )
            raise InternalError("Stored idempotency result is invalid") from e
