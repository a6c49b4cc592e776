# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bookmark actions."""

from collections.abc import Mapping
from typing import Any

from boardprep.api.dependencies import BaseActions
from boardprep.api.results import ActionResult
from boardprep.models.bookmark import (
    BookmarksResponse,
    ToggleBookmarkRequest,
    ToggleBookmarkResponse,
)
from boardprep.models.practice import EmptyRequest


class BookmarkActions(BaseActions):
    """Toggle and list question bookmarks."""

    async def toggle_bookmark(
        self, user_id: str | None, payload: Mapping[str, Any] | None
    ) -> ActionResult[ToggleBookmarkResponse]:
        async def handler(
            uid: str, request: ToggleBookmarkRequest
        ) -> ToggleBookmarkResponse:
            return await self._idempotent(
                uid,
                "bookmarks.toggle",
                request.idempotency_key,
                lambda: self.deps.bookmarks.toggle(uid, request.question_id),
                ToggleBookmarkResponse,
            )

        return await self._run(
            "bookmarks.toggle", user_id, payload, ToggleBookmarkRequest, handler
        )

    async def get_bookmarks(
        self, user_id: str | None, payload: Mapping[str, Any] | None = None
    ) -> ActionResult[BookmarksResponse]:
        async def handler(uid: str, request: EmptyRequest) -> BookmarksResponse:
            return await self.deps.bookmarks.list_bookmarks(uid)

        return await self._run(
            "bookmarks.list", user_id, payload, EmptyRequest, handler
        )
