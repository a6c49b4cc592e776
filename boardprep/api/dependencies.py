# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Action dependencies.

This module wires repository ports into the services used by the actions
and provides the shared action runner:
- build_dependencies: assemble services from ports and settings
- require_entitled_user: authentication and entitlement gate
- BaseActions: validation, gating, idempotency and error conversion
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel

from boardprep.api.results import ActionResult, handle_error, ok
from boardprep.core.config.settings import Settings, get_settings
from boardprep.core.errors import UnauthenticatedError
from boardprep.core.idempotency import IdempotencyGuard
from boardprep.core.ports.repositories import (
    AttemptRepository,
    BookmarkRepository,
    IdempotencyKeyRepository,
    PracticeSessionRepository,
    QuestionRepository,
    SubscriptionRepository,
    TagRepository,
)
from boardprep.domains.bookmark.service import BookmarkService
from boardprep.domains.practice.service import PracticeService
from boardprep.domains.stats.service import StatsService
from boardprep.domains.subscription.service import EntitlementService
from boardprep.domains.tag.service import TagService
from boardprep.utils.datetime import utc_now
from boardprep.utils.logging import bind_context, clear_context

RequestT = TypeVar("RequestT", bound=BaseModel)
ResponseT = TypeVar("ResponseT")


@dataclass
class ActionDependencies:
    """Services shared by all actions."""

    practice: PracticeService
    stats: StatsService
    bookmarks: BookmarkService
    entitlement: EntitlementService
    tags: TagService
    idempotency: IdempotencyGuard


def build_dependencies(
    questions: QuestionRepository,
    attempts: AttemptRepository,
    sessions: PracticeSessionRepository,
    subscriptions: SubscriptionRepository,
    bookmarks: BookmarkRepository,
    idempotency_keys: IdempotencyKeyRepository,
    tags: TagRepository,
    settings: Settings | None = None,
    now: Callable[[], datetime] = utc_now,
) -> ActionDependencies:
    """Build the action dependencies from repository implementations.

    Args:
        questions: Question repository.
        attempts: Attempt repository.
        sessions: Practice session repository.
        subscriptions: Subscription repository.
        bookmarks: Bookmark repository.
        idempotency_keys: Idempotency key repository.
        tags: Tag repository.
        settings: Application settings. Defaults to get_settings().
        now: Clock shared by every service.

    Returns:
        Wired ActionDependencies.
    """
    settings = settings or get_settings()
    return ActionDependencies(
        practice=PracticeService(questions, attempts, sessions, settings.practice, now),
        stats=StatsService(attempts, questions, settings.practice, now),
        bookmarks=BookmarkService(bookmarks, questions),
        entitlement=EntitlementService(subscriptions, now),
        tags=TagService(tags),
        idempotency=IdempotencyGuard(idempotency_keys, settings.idempotency, now),
    )


async def require_entitled_user(
    deps: ActionDependencies, user_id: str | None
) -> str:
    """Resolve the caller and check entitlement.

    Raises:
        UnauthenticatedError: If no user is signed in.
        UnsubscribedError: If the user is not entitled.
    """
    if not user_id:
        raise UnauthenticatedError("Authentication required")
    await deps.entitlement.require_entitled(user_id)
    return user_id


class BaseActions:
    """Shared runner for action classes.

    Attributes:
        deps: Services used by the actions.
    """

    def __init__(self, deps: ActionDependencies) -> None:
        self.deps = deps

    async def _run(
        self,
        action: str,
        user_id: str | None,
        payload: Mapping[str, Any] | None,
        request_model: type[RequestT],
        handler: Callable[[str, RequestT], Awaitable[ResponseT]],
    ) -> ActionResult[ResponseT]:
        """Validate, gate, execute and convert the outcome to a result.

        Args:
            action: Action name used for logging and idempotency scoping.
            user_id: Signed-in user, or None.
            payload: Untrusted input.
            request_model: Model the payload must satisfy.
            handler: Receives the resolved user id and the parsed request.
        """
        try:
            if payload is None:
                payload = {}
            elif isinstance(payload, Mapping):
                payload = dict(payload)
            request = request_model.model_validate(payload)
            resolved_user_id = await require_entitled_user(self.deps, user_id)
            bind_context(user_id=resolved_user_id, action=action)
            return ok(await handler(resolved_user_id, request))
        except Exception as e:
            return handle_error(e)
        finally:
            clear_context()

    async def _idempotent(
        self,
        user_id: str,
        action: str,
        idempotency_key: str | None,
        execute: Callable[[], Awaitable[ResponseT]],
        response_model: type[BaseModel],
    ) -> ResponseT:
        """Run a mutation through the idempotency guard when a key is given."""
        if idempotency_key is None:
            return await execute()
        return await self.deps.idempotency.run(
            user_id,
            action,
            idempotency_key,
            execute,
            response_model.model_validate,
        )
