# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tag actions."""

from collections.abc import Mapping
from typing import Any

from boardprep.api.dependencies import BaseActions
from boardprep.api.results import ActionResult
from boardprep.models.catalog import TagsResponse
from boardprep.models.practice import EmptyRequest


class TagActions(BaseActions):
    """Tag taxonomy reads."""

    async def get_tags(
        self, user_id: str | None, payload: Mapping[str, Any] | None = None
    ) -> ActionResult[TagsResponse]:
        async def handler(uid: str, request: EmptyRequest) -> TagsResponse:
            return await self.deps.tags.list_tags()

        return await self._run("tags.list", user_id, payload, EmptyRequest, handler)
