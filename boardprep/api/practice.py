# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice actions.

Entry points for the practice flow. Each action validates its payload,
requires an entitled user, runs mutations through the idempotency guard
when a key is supplied, and returns an ActionResult instead of raising.
"""

from collections.abc import Mapping
from typing import Any

from boardprep.api.dependencies import BaseActions
from boardprep.api.results import ActionResult
from boardprep.models.catalog import QuestionBySlugRequest
from boardprep.models.practice import (
    EmptyRequest,
    EndSessionResponse,
    GetNextQuestionRequest,
    IncompleteSessionResponse,
    MarkForReviewResponse,
    NextQuestionResponse,
    PageRequest,
    SessionCommandRequest,
    SessionHistoryResponse,
    SessionLookupRequest,
    SessionReviewResponse,
    SetMarkForReviewRequest,
    StartSessionRequest,
    StartSessionResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
    ToggleMarkForReviewRequest,
)


class PracticeActions(BaseActions):
    """Practice session and answer actions."""

    async def start_session(
        self, user_id: str | None, payload: Mapping[str, Any] | None
    ) -> ActionResult[StartSessionResponse]:
        async def handler(uid: str, request: StartSessionRequest) -> StartSessionResponse:
            return await self._idempotent(
                uid,
                "practice.start_session",
                request.idempotency_key,
                lambda: self.deps.practice.start_session(uid, request),
                StartSessionResponse,
            )

        return await self._run(
            "practice.start_session", user_id, payload, StartSessionRequest, handler
        )

    async def submit_answer(
        self, user_id: str | None, payload: Mapping[str, Any] | None
    ) -> ActionResult[SubmitAnswerResponse]:
        """Grade and record an answer.

        The idempotency key is required: a retried submit returns the
        original outcome and never records a second attempt.
        """

        async def handler(uid: str, request: SubmitAnswerRequest) -> SubmitAnswerResponse:
            return await self._idempotent(
                uid,
                "practice.submit_answer",
                request.idempotency_key,
                lambda: self.deps.practice.submit_answer(uid, request),
                SubmitAnswerResponse,
            )

        return await self._run(
            "practice.submit_answer", user_id, payload, SubmitAnswerRequest, handler
        )

    async def toggle_mark_for_review(
        self, user_id: str | None, payload: Mapping[str, Any] | None
    ) -> ActionResult[MarkForReviewResponse]:
        async def handler(
            uid: str, request: ToggleMarkForReviewRequest
        ) -> MarkForReviewResponse:
            return await self._idempotent(
                uid,
                "practice.toggle_mark_for_review",
                request.idempotency_key,
                lambda: self.deps.practice.toggle_mark_for_review(uid, request),
                MarkForReviewResponse,
            )

        return await self._run(
            "practice.toggle_mark_for_review",
            user_id,
            payload,
            ToggleMarkForReviewRequest,
            handler,
        )

    async def set_mark_for_review(
        self, user_id: str | None, payload: Mapping[str, Any] | None
    ) -> ActionResult[MarkForReviewResponse]:
        async def handler(
            uid: str, request: SetMarkForReviewRequest
        ) -> MarkForReviewResponse:
            return await self._idempotent(
                uid,
                "practice.set_mark_for_review",
                request.idempotency_key,
                lambda: self.deps.practice.set_mark_for_review(uid, request),
                MarkForReviewResponse,
            )

        return await self._run(
            "practice.set_mark_for_review",
            user_id,
            payload,
            SetMarkForReviewRequest,
            handler,
        )

    async def enter_review(
        self, user_id: str | None, payload: Mapping[str, Any] | None
    ) -> ActionResult[SessionReviewResponse]:
        async def handler(
            uid: str, request: SessionCommandRequest
        ) -> SessionReviewResponse:
            return await self._idempotent(
                uid,
                "practice.enter_review",
                request.idempotency_key,
                lambda: self.deps.practice.enter_review(uid, request.session_id),
                SessionReviewResponse,
            )

        return await self._run(
            "practice.enter_review", user_id, payload, SessionCommandRequest, handler
        )

    async def end_session(
        self, user_id: str | None, payload: Mapping[str, Any] | None
    ) -> ActionResult[EndSessionResponse]:
        async def handler(uid: str, request: SessionCommandRequest) -> EndSessionResponse:
            return await self._idempotent(
                uid,
                "practice.end_session",
                request.idempotency_key,
                lambda: self.deps.practice.end_session(uid, request.session_id),
                EndSessionResponse,
            )

        return await self._run(
            "practice.end_session", user_id, payload, SessionCommandRequest, handler
        )

    async def get_session_review(
        self, user_id: str | None, payload: Mapping[str, Any] | None
    ) -> ActionResult[SessionReviewResponse]:
        async def handler(uid: str, request: SessionLookupRequest) -> SessionReviewResponse:
            return await self.deps.practice.get_session_review(uid, request.session_id)

        return await self._run(
            "practice.get_session_review", user_id, payload, SessionLookupRequest, handler
        )

    async def get_next_question(
        self, user_id: str | None, payload: Mapping[str, Any] | None
    ) -> ActionResult[NextQuestionResponse]:
        """Serve the next question; data is None when nothing is left."""

        async def handler(
            uid: str, request: GetNextQuestionRequest
        ) -> NextQuestionResponse | None:
            return await self.deps.practice.get_next_question(uid, request)

        return await self._run(
            "practice.get_next_question",
            user_id,
            payload,
            GetNextQuestionRequest,
            handler,
        )

    async def get_question_by_slug(
        self, user_id: str | None, payload: Mapping[str, Any] | None
    ) -> ActionResult[NextQuestionResponse]:
        async def handler(
            uid: str, request: QuestionBySlugRequest
        ) -> NextQuestionResponse:
            return await self.deps.practice.get_question_by_slug(uid, request.slug)

        return await self._run(
            "practice.get_question_by_slug",
            user_id,
            payload,
            QuestionBySlugRequest,
            handler,
        )

    async def get_incomplete_session(
        self, user_id: str | None, payload: Mapping[str, Any] | None = None
    ) -> ActionResult[IncompleteSessionResponse]:
        async def handler(
            uid: str, request: EmptyRequest
        ) -> IncompleteSessionResponse | None:
            return await self.deps.practice.get_incomplete_session(uid)

        return await self._run(
            "practice.get_incomplete_session", user_id, payload, EmptyRequest, handler
        )

    async def get_session_history(
        self, user_id: str | None, payload: Mapping[str, Any] | None = None
    ) -> ActionResult[SessionHistoryResponse]:
        async def handler(uid: str, request: PageRequest) -> SessionHistoryResponse:
            return await self.deps.practice.get_session_history(uid, request)

        return await self._run(
            "practice.get_session_history", user_id, payload, PageRequest, handler
        )
