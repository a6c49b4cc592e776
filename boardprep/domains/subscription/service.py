# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Entitlement service.

Reads the subscription fresh on every call and applies the pure
entitlement rule. Nothing is cached: a cancellation or lapsed period takes
effect on the next request.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from boardprep.core.engine.entitlement import is_entitled
from boardprep.core.errors import UnsubscribedError
from boardprep.core.ports.repositories import SubscriptionRepository
from boardprep.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class EntitlementService:
    """Service answering whether a user may use premium features."""

    def __init__(
        self,
        subscriptions: SubscriptionRepository,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.subscriptions = subscriptions
        self._now = now

    async def is_entitled(self, user_id: str) -> bool:
        """Check entitlement against the current subscription."""
        subscription = await self.subscriptions.find_by_user_id(user_id)
        return is_entitled(subscription, self._now())

    async def require_entitled(self, user_id: str) -> None:
        """Raise unless the user is entitled.

        Raises:
            UnsubscribedError: If the user has no entitling subscription.
        """
        if not await self.is_entitled(user_id):
            logger.info("User %s is not entitled", user_id)
            raise UnsubscribedError("Subscription required")
