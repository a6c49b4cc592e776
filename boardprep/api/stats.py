# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Statistics actions."""

from collections.abc import Mapping
from typing import Any

from boardprep.api.dependencies import BaseActions
from boardprep.api.results import ActionResult
from boardprep.models.practice import EmptyRequest, PageRequest
from boardprep.models.stats import MissedQuestionsResponse, UserStatsResponse


class StatsActions(BaseActions):
    """Dashboard and missed-question reads."""

    async def get_user_stats(
        self, user_id: str | None, payload: Mapping[str, Any] | None = None
    ) -> ActionResult[UserStatsResponse]:
        async def handler(uid: str, request: EmptyRequest) -> UserStatsResponse:
            return await self.deps.stats.get_user_stats(uid)

        return await self._run(
            "stats.get_user_stats", user_id, payload, EmptyRequest, handler
        )

    async def get_missed_questions(
        self, user_id: str | None, payload: Mapping[str, Any] | None = None
    ) -> ActionResult[MissedQuestionsResponse]:
        async def handler(uid: str, request: PageRequest) -> MissedQuestionsResponse:
            return await self.deps.stats.get_missed_questions(uid, request)

        return await self._run(
            "stats.get_missed_questions", user_id, payload, PageRequest, handler
        )
