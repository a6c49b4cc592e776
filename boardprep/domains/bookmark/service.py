# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bookmark service.

Users bookmark published questions to revisit them. Bookmarks outlive the
question's publication; unpublished questions are listed as unavailable.
"""

import logging

from boardprep.core.errors import NotFoundError
from boardprep.core.ports.repositories import BookmarkRepository, QuestionRepository
from boardprep.domains.enrichment import (
    enrich_with_question,
    index_by_id,
    unique_question_ids,
)
from boardprep.models.bookmark import BookmarkRow, BookmarksResponse, ToggleBookmarkResponse
from boardprep.models.entities import Bookmark, Question

logger = logging.getLogger(__name__)


class BookmarkService:
    """Service for managing bookmarks.

    Example:
        >>> service = BookmarkService(bookmarks, questions)
        >>> result = await service.toggle(user_id, question_id)
        >>> result.bookmarked
        True
    """

    def __init__(
        self,
        bookmarks: BookmarkRepository,
        questions: QuestionRepository,
    ) -> None:
        self.bookmarks = bookmarks
        self.questions = questions

    async def toggle(self, user_id: str, question_id: str) -> ToggleBookmarkResponse:
        """Remove the bookmark if present, otherwise add it.

        Raises:
            NotFoundError: If adding a bookmark to a question that is not published.
        """
        if await self.bookmarks.remove(user_id, question_id):
            logger.debug("Removed bookmark %s for user %s", question_id, user_id)
            return ToggleBookmarkResponse(bookmarked=False)

        question = await self.questions.find_published_by_id(question_id)
        if question is None:
            raise NotFoundError("Question not found")

        await self.bookmarks.add(user_id, question_id)
        logger.debug("Added bookmark %s for user %s", question_id, user_id)
        return ToggleBookmarkResponse(bookmarked=True)

    async def is_bookmarked(self, user_id: str, question_id: str) -> bool:
        return await self.bookmarks.exists(user_id, question_id)

    async def list_bookmarks(self, user_id: str) -> BookmarksResponse:
        """List the user's bookmarks, newest first."""
        bookmarks = await self.bookmarks.list_by_user_id(user_id)
        if not bookmarks:
            return BookmarksResponse(rows=[])

        ids = unique_question_ids(b.question_id for b in bookmarks)
        questions = index_by_id(await self.questions.find_published_by_ids(ids))

        rows = enrich_with_question(
            rows=bookmarks,
            get_question_id=lambda b: b.question_id,
            questions_by_id=questions,
            available=_available_row,
            unavailable=_unavailable_row,
            missing_question_message="Bookmark references missing question",
        )
        return BookmarksResponse(rows=rows)


def _available_row(bookmark: Bookmark, question: Question) -> BookmarkRow:
    return BookmarkRow(
        is_available=True,
        question_id=question.id,
        bookmarked_at=bookmark.created_at,
        slug=question.slug,
        stem_md=question.stem_md,
        difficulty=question.difficulty,
    )


def _unavailable_row(bookmark: Bookmark) -> BookmarkRow:
    return BookmarkRow(
        is_available=False,
        question_id=bookmark.question_id,
        bookmarked_at=bookmark.created_at,
    )
