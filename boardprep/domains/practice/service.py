# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice session service.

This service drives the practice session lifecycle through the repository
ports. It handles session start, question serving, answer submission,
exam-mode review marks, the review stage and session completion.

State transitions are decided by the pure rules in
boardprep.core.engine.session; the repositories persist them with
compare-and-set updates, so concurrent requests cannot end a session twice.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from boardprep.core.config.settings import PracticeSettings
from boardprep.core.engine.choices import build_choice_views
from boardprep.core.engine.grading import GradeResult, grade_answer
from boardprep.core.engine.selection import (
    first_unanswered_question_id,
    select_next_question_id,
)
from boardprep.core.engine.session import (
    build_review_rows,
    can_mark_for_review,
    compute_session_progress,
    compute_session_totals,
    derive_session_state,
    ensure_can_answer,
    ensure_can_end,
    ensure_can_enter_review,
    require_question_state,
    should_show_explanation_for_session,
)
from boardprep.core.engine.shuffle import create_seed, shuffle_with_seed
from boardprep.core.errors import (
    ApplicationError,
    InternalError,
    NotFoundError,
    ValidationFailedError,
)
from boardprep.core.ports.repositories import (
    AttemptRepository,
    CandidateFilters,
    NewAttempt,
    NewPracticeSession,
    PracticeSessionRepository,
    QuestionAnswer,
    QuestionRepository,
)
from boardprep.domains.enrichment import index_by_id
from boardprep.models.entities import Attempt, PracticeSession, Question, QuestionState
from boardprep.models.practice import (
    ChoiceExplanation,
    ChoiceResponse,
    EndSessionResponse,
    GetNextQuestionRequest,
    IncompleteSessionResponse,
    MarkForReviewResponse,
    NextQuestionResponse,
    PageRequest,
    QuestionFilters,
    ReviewRowResponse,
    SessionHistoryResponse,
    SessionHistoryRow,
    SessionPosition,
    SessionReviewResponse,
    SessionTotalsResponse,
    SetMarkForReviewRequest,
    StartSessionRequest,
    StartSessionResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
    ToggleMarkForReviewRequest,
)
from boardprep.utils.datetime import to_epoch_ms, utc_now

logger = logging.getLogger(__name__)

ROLLBACK_FAILED_MESSAGE = "Failed to roll back attempt after session state persistence error"


class PracticeService:
    """Service for managing practice sessions.

    Attributes:
        questions: Published question reads.
        attempts: Attempt storage.
        sessions: Practice session storage.
        settings: Practice limits.

    Example:
        >>> service = PracticeService(questions, attempts, sessions)
        >>> started = await service.start_session(user_id, StartSessionRequest(mode="exam", count=20))
        >>> question = await service.get_next_question(
        ...     user_id, GetNextQuestionRequest(session_id=started.session_id)
        ... )
    """

    def __init__(
        self,
        questions: QuestionRepository,
        attempts: AttemptRepository,
        sessions: PracticeSessionRepository,
        settings: PracticeSettings | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the practice service.

        Args:
            questions: Published question reads.
            attempts: Attempt storage.
            sessions: Practice session storage.
            settings: Practice limits. Defaults are used when omitted.
            now: Clock returning timezone-aware UTC datetimes.
        """
        self.questions = questions
        self.attempts = attempts
        self.sessions = sessions
        self.settings = settings or PracticeSettings()
        self._now = now

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    async def start_session(
        self, user_id: str, request: StartSessionRequest
    ) -> StartSessionResponse:
        """Start a practice session with a fixed, per-user shuffled question list.

        Args:
            user_id: Session owner.
            request: Mode, question count and filters.

        Returns:
            The created session id, mode and actual question count.

        Raises:
            ValidationFailedError: If the request exceeds configured limits.
            NotFoundError: If no published question matches the filters.
        """
        self._validate_filters(request.tag_slugs, request.difficulties)
        if request.count > self.settings.max_session_questions:
            raise ValidationFailedError(
                "Invalid input",
                field_errors={
                    "count": [
                        f"Must be at most {self.settings.max_session_questions}"
                    ]
                },
            )

        candidate_ids = await self.questions.list_published_candidate_ids(
            CandidateFilters(
                tag_slugs=tuple(request.tag_slugs),
                difficulties=tuple(request.difficulties),
            )
        )
        if not candidate_ids:
            raise NotFoundError("No questions found")

        now = self._now()
        seed = create_seed(user_id, to_epoch_ms(now))
        question_ids = shuffle_with_seed(candidate_ids, seed)[: request.count]

        session = await self.sessions.create(
            NewPracticeSession(
                user_id=user_id,
                mode=request.mode,
                question_ids=tuple(question_ids),
                started_at=now,
                tag_filters=tuple(request.tag_slugs),
                difficulty_filters=tuple(request.difficulties),
            )
        )

        logger.info(
            "Started %s practice session %s with %d questions for user %s",
            session.mode.value,
            session.id,
            len(question_ids),
            user_id,
        )

        return StartSessionResponse(
            session_id=session.id,
            mode=session.mode,
            question_count=len(question_ids),
        )

    async def enter_review(self, user_id: str, session_id: str) -> SessionReviewResponse:
        """Move an exam session from in-progress to the review stage.

        Raises:
            NotFoundError: If the session is not owned by the user.
            ConflictError: For tutor sessions, or sessions already in review
                or ended.
        """
        session = await self._require_session(session_id, user_id)
        ensure_can_enter_review(session)

        updated = await self.sessions.begin_review(session_id, user_id, self._now())
        logger.info("Practice session %s entered review", session_id)

        return await self._build_review(updated)

    async def end_session(self, user_id: str, session_id: str) -> EndSessionResponse:
        """End a session and compute its totals.

        Raises:
            NotFoundError: If the session is not owned by the user.
            ConflictError: If the session already ended.
            InternalError: If storage reports success without an end time.
        """
        session = await self._require_session(session_id, user_id)
        ensure_can_end(session)

        ended = await self.sessions.end(session_id, user_id, self._now())
        if ended.ended_at is None:
            raise InternalError("Practice session did not end")

        totals = compute_session_totals(ended)
        logger.info(
            "Ended practice session %s: %d/%d correct",
            session_id,
            totals.correct,
            totals.answered,
        )

        return EndSessionResponse(
            session_id=ended.id,
            ended_at=ended.ended_at,
            totals=SessionTotalsResponse(
                answered=totals.answered,
                correct=totals.correct,
                accuracy=totals.accuracy,
                duration_seconds=totals.duration_seconds,
            ),
        )

    # =========================================================================
    # Questions and answers
    # =========================================================================

    async def get_next_question(
        self, user_id: str, request: GetNextQuestionRequest
    ) -> NextQuestionResponse | None:
        """Serve the next question.

        Inside a session this is the first question, in the session's fixed
        order, without an attempt. Without a session, the least recently
        practiced question from the filtered pool is served, unseen first.

        Returns:
            The question with per-user shuffled choices, or None when there
            is nothing left to serve.

        Raises:
            NotFoundError: If the session is not owned by the user, or the
                selected question is no longer published.
        """
        if request.session_id is not None:
            return await self._next_in_session(user_id, request.session_id)
        return await self._next_ad_hoc(user_id, request.filters or QuestionFilters())

    async def get_question_by_slug(self, user_id: str, slug: str) -> NextQuestionResponse:
        """Show a published question outside any session.

        Choices are shuffled per user, exactly as when the question is served
        for practice.

        Raises:
            NotFoundError: If no published question has the slug.
        """
        question = await self.questions.find_published_by_slug(slug)
        if question is None:
            raise NotFoundError("Question not found")
        return self._to_next_question(question, user_id, None)

    async def submit_answer(
        self, user_id: str, request: SubmitAnswerRequest
    ) -> SubmitAnswerResponse:
        """Grade and record an answer.

        The attempt is inserted first and the session's per-question state is
        updated second. If the second write fails the attempt is deleted and
        the original error is raised.

        Raises:
            NotFoundError: If the question, choice or session is missing, or
                the question is not part of the session.
            ConflictError: If the session already ended.
            DomainError: If the question's answer key is corrupt.
        """
        question = await self.questions.find_published_by_id(request.question_id)
        if question is None:
            raise NotFoundError("Question not found")

        if not any(choice.id == request.choice_id for choice in question.choices):
            raise NotFoundError("Choice not found")

        grade = grade_answer(question, request.choice_id)

        session: PracticeSession | None = None
        if request.session_id is not None:
            session = await self._require_session(request.session_id, user_id)
            ensure_can_answer(session)
            require_question_state(session, question.id)

        attempt = await self.attempts.insert(
            NewAttempt(
                user_id=user_id,
                question_id=question.id,
                practice_session_id=session.id if session else None,
                selected_choice_id=request.choice_id,
                is_correct=grade.is_correct,
                time_spent_seconds=self._clamp_time_spent(request.time_spent_seconds),
                answered_at=self._now(),
            )
        )

        if session is not None:
            await self._record_session_answer(session, attempt, grade)

        if session is not None and not should_show_explanation_for_session(session):
            return SubmitAnswerResponse(attempt_id=attempt.id)

        return SubmitAnswerResponse(
            attempt_id=attempt.id,
            is_correct=grade.is_correct,
            correct_choice_id=grade.correct_choice_id,
            explanation_md=question.explanation_md,
            choice_explanations=[
                ChoiceExplanation(
                    choice_id=view.choice_id,
                    display_label=view.display_label,
                    text_md=view.text_md,
                    is_correct=view.is_correct,
                    explanation_md=view.explanation_md,
                )
                for view in build_choice_views(question, user_id)
            ],
        )

    # =========================================================================
    # Review marks and review stage
    # =========================================================================

    async def toggle_mark_for_review(
        self, user_id: str, request: ToggleMarkForReviewRequest
    ) -> MarkForReviewResponse:
        """Flip the review mark of a session question.

        A no-op in tutor sessions, which returns the current flag.
        """
        return await self._apply_mark(
            user_id,
            request.session_id,
            request.question_id,
            lambda state: not state.marked_for_review,
        )

    async def set_mark_for_review(
        self, user_id: str, request: SetMarkForReviewRequest
    ) -> MarkForReviewResponse:
        """Set the review mark of a session question to a given value.

        A no-op in tutor sessions, which returns the current flag.
        """
        return await self._apply_mark(
            user_id,
            request.session_id,
            request.question_id,
            lambda state: request.marked_for_review,
        )

    async def get_session_review(
        self, user_id: str, session_id: str
    ) -> SessionReviewResponse:
        """Per-question summary of a session.

        Reading the review never changes the session state.
        """
        session = await self._require_session(session_id, user_id)
        return await self._build_review(session)

    # =========================================================================
    # Session reads
    # =========================================================================

    async def get_incomplete_session(
        self, user_id: str
    ) -> IncompleteSessionResponse | None:
        """Summary of the user's latest session that has not ended."""
        session = await self.sessions.find_latest_incomplete_by_user_id(user_id)
        if session is None:
            return None

        return IncompleteSessionResponse(
            session_id=session.id,
            mode=session.mode,
            state=derive_session_state(session),
            answered_count=sum(1 for s in session.question_states if s.is_answered),
            total_count=len(session.question_ids),
            started_at=session.started_at,
        )

    async def get_session_history(
        self, user_id: str, page: PageRequest
    ) -> SessionHistoryResponse:
        """Completed sessions, most recently ended first, with totals.

        Raises:
            ValidationFailedError: If the page size exceeds the configured limit.
        """
        self._validate_page(page)
        result = await self.sessions.find_completed_by_user_id(
            user_id, page.limit, page.offset
        )

        rows = []
        for session in result.rows:
            if session.ended_at is None:
                continue
            totals = compute_session_totals(session)
            rows.append(
                SessionHistoryRow(
                    session_id=session.id,
                    mode=session.mode,
                    question_count=len(session.question_ids),
                    answered=totals.answered,
                    correct=totals.correct,
                    accuracy=totals.accuracy,
                    duration_seconds=totals.duration_seconds,
                    started_at=session.started_at,
                    ended_at=session.ended_at,
                )
            )

        return SessionHistoryResponse(
            rows=rows, total=result.total, limit=page.limit, offset=page.offset
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _require_session(self, session_id: str, user_id: str) -> PracticeSession:
        session = await self.sessions.find_by_id_and_user_id(session_id, user_id)
        if session is None:
            raise NotFoundError("Practice session not found")
        return session

    async def _next_in_session(
        self, user_id: str, session_id: str
    ) -> NextQuestionResponse | None:
        session = await self._require_session(session_id, user_id)
        if session.ended_at is not None:
            return None

        attempts = await self.attempts.find_by_session_id(session_id, user_id)
        answered_ids = [a.question_id for a in attempts]

        next_id = first_unanswered_question_id(session.question_ids, answered_ids)
        if next_id is None:
            return None

        question = await self._require_published(next_id)

        session_question_ids = set(session.question_ids)
        answered_count = len({qid for qid in answered_ids if qid in session_question_ids})
        progress = compute_session_progress(session, answered_count)

        return self._to_next_question(
            question,
            user_id,
            SessionPosition(
                session_id=session.id,
                mode=session.mode,
                index=progress.current,
                total=progress.total,
            ),
        )

    async def _next_ad_hoc(
        self, user_id: str, filters: QuestionFilters
    ) -> NextQuestionResponse | None:
        self._validate_filters(filters.tag_slugs, filters.difficulties)
        candidate_ids = await self.questions.list_published_candidate_ids(
            CandidateFilters(
                tag_slugs=tuple(filters.tag_slugs),
                difficulties=tuple(filters.difficulties),
            )
        )
        if not candidate_ids:
            return None

        history = await self.attempts.find_most_recent_answered_at_by_question_ids(
            user_id, candidate_ids
        )
        selected_id = select_next_question_id(candidate_ids, history)
        if selected_id is None:
            return None

        question = await self._require_published(selected_id)
        return self._to_next_question(question, user_id, None)

    async def _require_published(self, question_id: str) -> Question:
        question = await self.questions.find_published_by_id(question_id)
        if question is None:
            raise NotFoundError("Question not found")
        return question

    def _to_next_question(
        self,
        question: Question,
        user_id: str,
        position: SessionPosition | None,
    ) -> NextQuestionResponse:
        return NextQuestionResponse(
            question_id=question.id,
            slug=question.slug,
            stem_md=question.stem_md,
            difficulty=question.difficulty,
            choices=[
                ChoiceResponse(
                    id=view.choice_id,
                    label=view.display_label,
                    text_md=view.text_md,
                    sort_order=view.sort_order,
                )
                for view in build_choice_views(question, user_id)
            ],
            session=position,
        )

    async def _record_session_answer(
        self, session: PracticeSession, attempt: Attempt, grade: GradeResult
    ) -> None:
        try:
            await self.sessions.record_question_answer(
                QuestionAnswer(
                    session_id=session.id,
                    user_id=attempt.user_id,
                    question_id=attempt.question_id,
                    selected_choice_id=attempt.selected_choice_id,
                    is_correct=grade.is_correct,
                    answered_at=attempt.answered_at,
                )
            )
        except Exception as e:
            logger.error(
                "Failed to record answer in session %s, rolling back attempt %s: %s",
                session.id,
                attempt.id,
                str(e),
            )
            try:
                rolled_back = await self.attempts.delete_by_id(attempt.id, attempt.user_id)
            except ApplicationError:
                raise
            except Exception as rollback_error:
                raise InternalError(ROLLBACK_FAILED_MESSAGE) from rollback_error

            if not rolled_back:
                raise InternalError(ROLLBACK_FAILED_MESSAGE) from e
            raise

    async def _apply_mark(
        self,
        user_id: str,
        session_id: str,
        question_id: str,
        desired: Callable[[QuestionState], bool],
    ) -> MarkForReviewResponse:
        session = await self._require_session(session_id, user_id)
        state = require_question_state(session, question_id)

        if not can_mark_for_review(session):
            return MarkForReviewResponse(
                question_id=state.question_id,
                marked_for_review=state.marked_for_review,
            )

        updated = await self.sessions.set_question_marked_for_review(
            session_id, user_id, question_id, desired(state)
        )
        return MarkForReviewResponse(
            question_id=updated.question_id,
            marked_for_review=updated.marked_for_review,
        )

    async def _build_review(self, session: PracticeSession) -> SessionReviewResponse:
        questions = await self.questions.find_published_by_ids(list(session.question_ids))
        rows = build_review_rows(session, index_by_id(questions))

        for row in rows:
            if not row.is_available:
                logger.warning(
                    "Practice session review references missing question: question_id=%s",
                    row.question_id,
                )

        return SessionReviewResponse(
            session_id=session.id,
            mode=session.mode,
            state=derive_session_state(session),
            total_count=len(session.question_ids),
            answered_count=sum(1 for row in rows if row.is_answered),
            marked_count=sum(1 for row in rows if row.marked_for_review),
            rows=[
                ReviewRowResponse(
                    question_id=row.question_id,
                    order=row.order,
                    is_available=row.is_available,
                    is_answered=row.is_answered,
                    is_correct=row.is_correct,
                    marked_for_review=row.marked_for_review,
                    stem_md=row.question.stem_md if row.question else None,
                    difficulty=row.question.difficulty if row.question else None,
                )
                for row in rows
            ],
        )

    def _clamp_time_spent(self, value: int | None) -> int:
        if value is None:
            return 0
        return min(max(0, value), self.settings.max_time_spent_seconds)

    def _validate_filters(self, tag_slugs: list[str], difficulties: list) -> None:
        field_errors: dict[str, list[str]] = {}
        if len(tag_slugs) > self.settings.max_tag_filters:
            field_errors["tag_slugs"] = [
                f"Must contain at most {self.settings.max_tag_filters} items"
            ]
        if len(difficulties) > self.settings.max_difficulty_filters:
            field_errors["difficulties"] = [
                f"Must contain at most {self.settings.max_difficulty_filters} items"
            ]
        if field_errors:
            raise ValidationFailedError("Invalid input", field_errors=field_errors)

    def _validate_page(self, page: PageRequest) -> None:
        if page.limit > self.settings.max_pagination_limit:
            raise ValidationFailedError(
                "Invalid input",
                field_errors={
                    "limit": [f"Must be at most {self.settings.max_pagination_limit}"]
                },
            )
