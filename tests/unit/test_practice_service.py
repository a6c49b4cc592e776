# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for practice service."""

from unittest.mock import AsyncMock

import pytest

from boardprep.core.engine.choices import build_choice_views
from boardprep.core.errors import (
    ConflictError,
    ErrorCode,
    InternalError,
    NotFoundError,
    ValidationFailedError,
)
from boardprep.domains.practice.service import PracticeService
from boardprep.models.common import PracticeMode, QuestionDifficulty, SessionState
from boardprep.models.practice import (
    GetNextQuestionRequest,
    PageRequest,
    QuestionFilters,
    SetMarkForReviewRequest,
    StartSessionRequest,
    SubmitAnswerRequest,
    ToggleMarkForReviewRequest,
)
from fakes import (
    OTHER_USER_ID,
    USER_ID,
    FakeClock,
    InMemoryAttemptRepository,
    InMemoryPracticeSessionRepository,
    InMemoryQuestionRepository,
)


async def _start(
    service: PracticeService, mode: PracticeMode = PracticeMode.TUTOR, count: int = 4
) -> str:
    started = await service.start_session(
        USER_ID, StartSessionRequest(mode=mode, count=count)
    )
    return started.session_id


def _correct_choice(question_id: str) -> str:
    # q1..q4 are keyed c1..c4 in the shared question bank
    return f"{question_id}-c{question_id[1:]}"


def _wrong_choice(question_id: str) -> str:
    return f"{question_id}-c1" if question_id != "q1" else "q1-c2"


def _submit(
    question_id: str,
    choice_id: str,
    session_id: str | None = None,
    key: str = "k",
    time_spent_seconds: int | None = None,
) -> SubmitAnswerRequest:
    return SubmitAnswerRequest(
        question_id=question_id,
        choice_id=choice_id,
        idempotency_key=key,
        session_id=session_id,
        time_spent_seconds=time_spent_seconds,
    )


class TestStartSession:
    """Tests for PracticeService.start_session."""

    @pytest.mark.asyncio
    async def test_draws_shuffled_published_questions(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        """Test the session holds published questions only, capped by the pool."""
        started = await practice_service.start_session(
            USER_ID, StartSessionRequest(mode=PracticeMode.EXAM, count=10)
        )

        assert started.mode == PracticeMode.EXAM
        assert started.question_count == 4
        session = session_repo.sessions[started.session_id]
        assert sorted(session.question_ids) == ["q1", "q2", "q3", "q4"]
        assert all(not state.is_answered for state in session.question_states)

    @pytest.mark.asyncio
    async def test_count_truncates(
        self, practice_service: PracticeService
    ) -> None:
        started = await practice_service.start_session(
            USER_ID, StartSessionRequest(mode=PracticeMode.TUTOR, count=2)
        )

        assert started.question_count == 2

    @pytest.mark.asyncio
    async def test_filters(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        started = await practice_service.start_session(
            USER_ID,
            StartSessionRequest(mode=PracticeMode.TUTOR, count=10, tag_slugs=["cardio"]),
        )

        session = session_repo.sessions[started.session_id]
        assert sorted(session.question_ids) == ["q1", "q3"]
        assert session.tag_filters == ("cardio",)

    @pytest.mark.asyncio
    async def test_no_matching_questions(self, practice_service: PracticeService) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await practice_service.start_session(
                USER_ID,
                StartSessionRequest(
                    mode=PracticeMode.TUTOR, count=5, tag_slugs=["neuro"]
                ),
            )

        assert exc_info.value.message == "No questions found"

    @pytest.mark.asyncio
    async def test_count_above_limit(self, practice_service: PracticeService) -> None:
        """Test configured limits are reported as field errors."""
        with pytest.raises(ValidationFailedError) as exc_info:
            await practice_service.start_session(
                USER_ID, StartSessionRequest(mode=PracticeMode.TUTOR, count=201)
            )

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert "count" in exc_info.value.field_errors

    @pytest.mark.asyncio
    async def test_too_many_difficulty_filters(
        self, practice_service: PracticeService
    ) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            await practice_service.start_session(
                USER_ID,
                StartSessionRequest(
                    mode=PracticeMode.TUTOR,
                    count=1,
                    difficulties=[QuestionDifficulty.EASY] * 4,
                ),
            )

        assert "difficulties" in exc_info.value.field_errors


class TestGetNextQuestion:
    """Tests for PracticeService.get_next_question."""

    @pytest.mark.asyncio
    async def test_follows_session_order(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        """Test questions are served in the session's fixed order."""
        session_id = await _start(practice_service)
        order = session_repo.sessions[session_id].question_ids

        first = await practice_service.get_next_question(
            USER_ID, GetNextQuestionRequest(session_id=session_id)
        )
        assert first.question_id == order[0]
        assert first.session.index == 0
        assert first.session.total == 4
        assert [c.label for c in first.choices] == ["A", "B", "C", "D"]

        await practice_service.submit_answer(
            USER_ID, _submit(order[0], _wrong_choice(order[0]), session_id)
        )

        second = await practice_service.get_next_question(
            USER_ID, GetNextQuestionRequest(session_id=session_id)
        )
        assert second.question_id == order[1]
        assert second.session.index == 1

    @pytest.mark.asyncio
    async def test_none_when_all_answered(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        session_id = await _start(practice_service, count=2)
        for question_id in session_repo.sessions[session_id].question_ids:
            await practice_service.submit_answer(
                USER_ID, _submit(question_id, _correct_choice(question_id), session_id)
            )

        result = await practice_service.get_next_question(
            USER_ID, GetNextQuestionRequest(session_id=session_id)
        )

        assert result is None

    @pytest.mark.asyncio
    async def test_none_when_ended(self, practice_service: PracticeService) -> None:
        session_id = await _start(practice_service)
        await practice_service.end_session(USER_ID, session_id)

        result = await practice_service.get_next_question(
            USER_ID, GetNextQuestionRequest(session_id=session_id)
        )

        assert result is None

    @pytest.mark.asyncio
    async def test_other_users_session(self, practice_service: PracticeService) -> None:
        session_id = await _start(practice_service)

        with pytest.raises(NotFoundError):
            await practice_service.get_next_question(
                OTHER_USER_ID, GetNextQuestionRequest(session_id=session_id)
            )

    @pytest.mark.asyncio
    async def test_ad_hoc_prefers_unseen(self, practice_service: PracticeService) -> None:
        """Test ad-hoc practice skips questions the user has answered."""
        await practice_service.submit_answer(USER_ID, _submit("q1", "q1-c1"))

        result = await practice_service.get_next_question(
            USER_ID, GetNextQuestionRequest(filters=QuestionFilters(tag_slugs=["cardio"]))
        )

        assert result.question_id == "q3"
        assert result.session is None

    @pytest.mark.asyncio
    async def test_ad_hoc_empty_pool(self, practice_service: PracticeService) -> None:
        result = await practice_service.get_next_question(
            USER_ID, GetNextQuestionRequest(filters=QuestionFilters(tag_slugs=["neuro"]))
        )

        assert result is None


class TestGetQuestionBySlug:
    """Tests for PracticeService.get_question_by_slug."""

    @pytest.mark.asyncio
    async def test_published_question(
        self,
        practice_service: PracticeService,
        question_repo: InMemoryQuestionRepository,
    ) -> None:
        """Test choices come back in the user's own shuffled order."""
        result = await practice_service.get_question_by_slug(USER_ID, "q1-slug")

        question = question_repo.questions["q1"]
        expected = [view.choice_id for view in build_choice_views(question, USER_ID)]
        assert result.question_id == "q1"
        assert result.session is None
        assert [c.id for c in result.choices] == expected
        assert [c.label for c in result.choices] == ["A", "B", "C", "D"]

    @pytest.mark.asyncio
    async def test_draft_or_unknown_slug(self, practice_service: PracticeService) -> None:
        with pytest.raises(NotFoundError, match="Question not found"):
            await practice_service.get_question_by_slug(USER_ID, "q5-slug")

        with pytest.raises(NotFoundError):
            await practice_service.get_question_by_slug(USER_ID, "missing")


class TestSubmitAnswer:
    """Tests for PracticeService.submit_answer."""

    @pytest.mark.asyncio
    async def test_tutor_reveals_feedback(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
        attempt_repo: InMemoryAttemptRepository,
    ) -> None:
        """Test tutor answers return correctness and explanations immediately."""
        session_id = await _start(practice_service)
        question_id = session_repo.sessions[session_id].question_ids[0]

        result = await practice_service.submit_answer(
            USER_ID, _submit(question_id, _correct_choice(question_id), session_id)
        )

        assert result.is_correct is True
        assert result.correct_choice_id == _correct_choice(question_id)
        assert result.explanation_md == f"Explanation of {question_id}"
        assert len(result.choice_explanations) == 4
        state = session_repo.sessions[session_id].state_for(question_id)
        assert state.latest_is_correct is True
        assert attempt_repo.attempts[0].practice_session_id == session_id

    @pytest.mark.asyncio
    async def test_exam_withholds_feedback(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        """Test exam answers return only the attempt id before the session ends."""
        session_id = await _start(practice_service, mode=PracticeMode.EXAM)
        question_id = session_repo.sessions[session_id].question_ids[0]

        result = await practice_service.submit_answer(
            USER_ID, _submit(question_id, _wrong_choice(question_id), session_id)
        )

        assert result.attempt_id
        assert result.is_correct is None
        assert result.correct_choice_id is None
        assert result.choice_explanations == []

    @pytest.mark.asyncio
    async def test_without_session(
        self, practice_service: PracticeService, attempt_repo: InMemoryAttemptRepository
    ) -> None:
        result = await practice_service.submit_answer(USER_ID, _submit("q2", "q2-c1"))

        assert result.is_correct is False
        assert result.correct_choice_id == "q2-c2"
        assert attempt_repo.attempts[0].practice_session_id is None

    @pytest.mark.asyncio
    async def test_answer_overwrites_latest_state(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
        attempt_repo: InMemoryAttemptRepository,
    ) -> None:
        session_id = await _start(practice_service)
        question_id = session_repo.sessions[session_id].question_ids[0]

        await practice_service.submit_answer(
            USER_ID, _submit(question_id, _wrong_choice(question_id), session_id)
        )
        await practice_service.submit_answer(
            USER_ID, _submit(question_id, _correct_choice(question_id), session_id, key="k2")
        )

        state = session_repo.sessions[session_id].state_for(question_id)
        assert state.latest_selected_choice_id == _correct_choice(question_id)
        assert state.latest_is_correct is True
        assert len(attempt_repo.attempts) == 2

    @pytest.mark.asyncio
    async def test_time_spent_clamped(
        self, practice_service: PracticeService, attempt_repo: InMemoryAttemptRepository
    ) -> None:
        await practice_service.submit_answer(
            USER_ID, _submit("q1", "q1-c1", time_spent_seconds=-5)
        )
        await practice_service.submit_answer(
            USER_ID, _submit("q2", "q2-c1", time_spent_seconds=10**9)
        )

        assert attempt_repo.attempts[0].time_spent_seconds == 0
        assert attempt_repo.attempts[1].time_spent_seconds == 86400

    @pytest.mark.asyncio
    async def test_unknown_question_and_choice(self, practice_service: PracticeService) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await practice_service.submit_answer(USER_ID, _submit("q5", "q5-c1"))
        assert exc_info.value.message == "Question not found"

        with pytest.raises(NotFoundError) as exc_info:
            await practice_service.submit_answer(USER_ID, _submit("q1", "q2-c1"))
        assert exc_info.value.message == "Choice not found"

    @pytest.mark.asyncio
    async def test_question_outside_session(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
        attempt_repo: InMemoryAttemptRepository,
    ) -> None:
        session_id = await _start(practice_service, count=1)
        in_session = session_repo.sessions[session_id].question_ids[0]
        outside = next(q for q in ("q1", "q2", "q3", "q4") if q != in_session)

        with pytest.raises(NotFoundError):
            await practice_service.submit_answer(
                USER_ID, _submit(outside, f"{outside}-c1", session_id)
            )

        assert attempt_repo.attempts == []

    @pytest.mark.asyncio
    async def test_ended_session_rejects_answers(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        session_id = await _start(practice_service)
        question_id = session_repo.sessions[session_id].question_ids[0]
        await practice_service.end_session(USER_ID, session_id)

        with pytest.raises(ConflictError):
            await practice_service.submit_answer(
                USER_ID, _submit(question_id, f"{question_id}-c1", session_id)
            )

    @pytest.mark.asyncio
    async def test_rolls_back_attempt_when_session_update_fails(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
        attempt_repo: InMemoryAttemptRepository,
    ) -> None:
        """Test a failed session update deletes the attempt and re-raises."""
        session_id = await _start(practice_service)
        question_id = session_repo.sessions[session_id].question_ids[0]
        session_repo.record_question_answer = AsyncMock(side_effect=RuntimeError("lost"))

        with pytest.raises(RuntimeError, match="lost"):
            await practice_service.submit_answer(
                USER_ID, _submit(question_id, f"{question_id}-c1", session_id)
            )

        assert attempt_repo.attempts == []

    @pytest.mark.asyncio
    async def test_failed_rollback_is_internal_error(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
        attempt_repo: InMemoryAttemptRepository,
    ) -> None:
        session_id = await _start(practice_service)
        question_id = session_repo.sessions[session_id].question_ids[0]
        session_repo.record_question_answer = AsyncMock(side_effect=RuntimeError("lost"))
        attempt_repo.delete_by_id = AsyncMock(return_value=False)

        with pytest.raises(InternalError):
            await practice_service.submit_answer(
                USER_ID, _submit(question_id, f"{question_id}-c1", session_id)
            )


class TestReviewMarks:
    """Tests for mark-for-review actions."""

    @pytest.mark.asyncio
    async def test_tutor_marking_is_noop(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        session_id = await _start(practice_service)
        question_id = session_repo.sessions[session_id].question_ids[0]

        result = await practice_service.toggle_mark_for_review(
            USER_ID,
            ToggleMarkForReviewRequest(session_id=session_id, question_id=question_id),
        )

        assert result.marked_for_review is False
        assert session_repo.sessions[session_id].state_for(question_id).marked_for_review is False

    @pytest.mark.asyncio
    async def test_exam_toggle_and_set(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        session_id = await _start(practice_service, mode=PracticeMode.EXAM)
        question_id = session_repo.sessions[session_id].question_ids[0]
        toggle = ToggleMarkForReviewRequest(session_id=session_id, question_id=question_id)

        assert (await practice_service.toggle_mark_for_review(USER_ID, toggle)).marked_for_review
        assert not (
            await practice_service.toggle_mark_for_review(USER_ID, toggle)
        ).marked_for_review

        result = await practice_service.set_mark_for_review(
            USER_ID,
            SetMarkForReviewRequest(
                session_id=session_id, question_id=question_id, marked_for_review=True
            ),
        )
        assert result.marked_for_review is True
        assert session_repo.sessions[session_id].state_for(question_id).marked_for_review

    @pytest.mark.asyncio
    async def test_exam_marking_rejected_in_review(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        session_id = await _start(practice_service, mode=PracticeMode.EXAM)
        question_id = session_repo.sessions[session_id].question_ids[0]
        await practice_service.enter_review(USER_ID, session_id)

        with pytest.raises(ConflictError):
            await practice_service.toggle_mark_for_review(
                USER_ID,
                ToggleMarkForReviewRequest(session_id=session_id, question_id=question_id),
            )

    @pytest.mark.asyncio
    async def test_question_not_in_session(self, practice_service: PracticeService) -> None:
        session_id = await _start(practice_service, mode=PracticeMode.EXAM)

        with pytest.raises(NotFoundError):
            await practice_service.toggle_mark_for_review(
                USER_ID, ToggleMarkForReviewRequest(session_id=session_id, question_id="q9")
            )


class TestReviewAndEnd:
    """Tests for the review stage and session completion."""

    @pytest.mark.asyncio
    async def test_enter_review_exam_only(self, practice_service: PracticeService) -> None:
        session_id = await _start(practice_service, mode=PracticeMode.TUTOR)

        with pytest.raises(ConflictError):
            await practice_service.enter_review(USER_ID, session_id)

    @pytest.mark.asyncio
    async def test_enter_review_hides_correctness(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        session_id = await _start(practice_service, mode=PracticeMode.EXAM)
        question_id = session_repo.sessions[session_id].question_ids[0]
        await practice_service.submit_answer(
            USER_ID, _submit(question_id, _correct_choice(question_id), session_id)
        )

        review = await practice_service.enter_review(USER_ID, session_id)

        assert review.state == SessionState.AWAITING_REVIEW
        assert review.answered_count == 1
        assert review.total_count == 4
        assert all(row.is_correct is None for row in review.rows)

        with pytest.raises(ConflictError):
            await practice_service.enter_review(USER_ID, session_id)

    @pytest.mark.asyncio
    async def test_end_session_totals(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
        clock: FakeClock,
    ) -> None:
        session_id = await _start(practice_service, mode=PracticeMode.EXAM)
        order = session_repo.sessions[session_id].question_ids
        await practice_service.submit_answer(
            USER_ID, _submit(order[0], _correct_choice(order[0]), session_id, key="a")
        )
        await practice_service.submit_answer(
            USER_ID, _submit(order[1], _wrong_choice(order[1]), session_id, key="b")
        )
        clock.advance(minutes=3)

        ended = await practice_service.end_session(USER_ID, session_id)

        assert ended.ended_at == clock.now
        assert ended.totals.answered == 2
        assert ended.totals.correct == 1
        assert ended.totals.accuracy == pytest.approx(0.5)
        assert ended.totals.duration_seconds == 180

        review = await practice_service.get_session_review(USER_ID, session_id)
        assert review.state == SessionState.ENDED
        assert [row.is_correct for row in review.rows[:2]] == [True, False]

    @pytest.mark.asyncio
    async def test_end_twice_conflicts(self, practice_service: PracticeService) -> None:
        session_id = await _start(practice_service)
        await practice_service.end_session(USER_ID, session_id)

        with pytest.raises(ConflictError):
            await practice_service.end_session(USER_ID, session_id)

    @pytest.mark.asyncio
    async def test_end_other_users_session(self, practice_service: PracticeService) -> None:
        session_id = await _start(practice_service)

        with pytest.raises(NotFoundError):
            await practice_service.end_session(OTHER_USER_ID, session_id)

    @pytest.mark.asyncio
    async def test_end_race_lost_to_repository(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        """Test the repository compare-and-set decides when the read was stale."""
        session_id = await _start(practice_service)
        session_repo.end = AsyncMock(side_effect=ConflictError("Practice session already ended"))

        with pytest.raises(ConflictError):
            await practice_service.end_session(USER_ID, session_id)


class TestSessionReads:
    """Tests for incomplete-session and history reads."""

    @pytest.mark.asyncio
    async def test_incomplete_session(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
    ) -> None:
        assert await practice_service.get_incomplete_session(USER_ID) is None

        session_id = await _start(practice_service, mode=PracticeMode.EXAM)
        question_id = session_repo.sessions[session_id].question_ids[0]
        await practice_service.submit_answer(
            USER_ID, _submit(question_id, f"{question_id}-c1", session_id)
        )

        incomplete = await practice_service.get_incomplete_session(USER_ID)

        assert incomplete.session_id == session_id
        assert incomplete.state == SessionState.IN_PROGRESS
        assert incomplete.answered_count == 1
        assert incomplete.total_count == 4

        await practice_service.end_session(USER_ID, session_id)
        assert await practice_service.get_incomplete_session(USER_ID) is None

    @pytest.mark.asyncio
    async def test_history_newest_first(
        self, practice_service: PracticeService, clock: FakeClock
    ) -> None:
        first = await _start(practice_service)
        clock.advance(minutes=1)
        await practice_service.end_session(USER_ID, first)
        clock.advance(minutes=1)
        second = await _start(practice_service, count=2)
        clock.advance(seconds=30)
        await practice_service.end_session(USER_ID, second)

        history = await practice_service.get_session_history(USER_ID, PageRequest())

        assert history.total == 2
        assert [row.session_id for row in history.rows] == [second, first]
        assert history.rows[0].question_count == 2
        assert history.rows[0].duration_seconds == 30

    @pytest.mark.asyncio
    async def test_history_page_limit(self, practice_service: PracticeService) -> None:
        with pytest.raises(ValidationFailedError):
            await practice_service.get_session_history(USER_ID, PageRequest(limit=101))

    @pytest.mark.asyncio
    async def test_session_review_other_user(self, practice_service: PracticeService) -> None:
        session_id = await _start(practice_service)

        with pytest.raises(NotFoundError):
            await practice_service.get_session_review(OTHER_USER_ID, session_id)

    @pytest.mark.asyncio
    async def test_review_marks_missing_question_unavailable(
        self,
        practice_service: PracticeService,
        session_repo: InMemoryPracticeSessionRepository,
        question_repo: InMemoryQuestionRepository,
    ) -> None:
        session_id = await _start(practice_service)
        missing = session_repo.sessions[session_id].question_ids[0]
        del question_repo.questions[missing]

        review = await practice_service.get_session_review(USER_ID, session_id)

        row = next(r for r in review.rows if r.question_id == missing)
        assert row.is_available is False
        assert row.stem_md is None
        assert review.total_count == 4
