# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request and response models for bookmarks."""

from datetime import datetime

from pydantic import BaseModel

from boardprep.models.common import QuestionDifficulty
from boardprep.models.practice import EntityId, IdempotencyKey, RequestModel


class ToggleBookmarkRequest(RequestModel):
    question_id: EntityId
    idempotency_key: IdempotencyKey | None = None


class ToggleBookmarkResponse(BaseModel):
    bookmarked: bool


class BookmarkRow(BaseModel):
    """A bookmarked question. Question fields are None when unavailable."""

    is_available: bool
    question_id: str
    bookmarked_at: datetime
    slug: str | None = None
    stem_md: str | None = None
    difficulty: QuestionDifficulty | None = None


class BookmarksResponse(BaseModel):
    rows: list[BookmarkRow]
