# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pure practice-session rules.

This module holds the session state machine as data-only functions:
- Deriving the lifecycle state from a persisted session
- Guarding transitions (answer, mark, enter review, end)
- Explanation gating
- Progress and totals
- The per-question review summary

Persistence of transitions is done by the PracticeSessionRepository through
compare-and-set operations. The guards here only reject transitions that the
state read from storage already rules out.

State graph:
    NOT_STARTED -> IN_PROGRESS -> ENDED                      (tutor)
    NOT_STARTED -> IN_PROGRESS -> AWAITING_REVIEW -> ENDED   (exam)
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from boardprep.core.engine.statistics import compute_accuracy
from boardprep.core.errors import ConflictError, NotFoundError
from boardprep.models.common import PracticeMode, SessionState
from boardprep.models.entities import PracticeSession, Question, QuestionState
from boardprep.utils.datetime import whole_seconds_between


@dataclass(frozen=True)
class SessionProgress:
    """Position within a fixed session question list.

    Attributes:
        current: Number of distinct session questions answered, capped at total.
        total: Number of questions in the session.
        is_complete: Whether every question has been answered.
    """

    current: int
    total: int
    is_complete: bool


@dataclass(frozen=True)
class SessionTotals:
    """Answered/correct totals of a session."""

    answered: int
    correct: int
    accuracy: float
    duration_seconds: int


@dataclass(frozen=True)
class ReviewRow:
    """One line of the session review summary.

    Correctness is None when it must not be shown yet or the question has
    not been answered. question is None when the question is no longer
    published.
    """

    question_id: str
    order: int
    is_answered: bool
    is_correct: bool | None
    marked_for_review: bool
    question: Question | None = None

    @property
    def is_available(self) -> bool:
        return self.question is not None


def derive_session_state(session: PracticeSession | None) -> SessionState:
    """Map a persisted session to its lifecycle state."""
    if session is None:
        return SessionState.NOT_STARTED
    if session.ended_at is not None:
        return SessionState.ENDED
    if session.review_started_at is not None:
        return SessionState.AWAITING_REVIEW
    return SessionState.IN_PROGRESS


def should_show_explanation(mode: PracticeMode, ended: bool) -> bool:
    """Whether correctness and explanations may be shown.

    Always for tutor sessions; for exam sessions only once ended.
    """
    if mode == PracticeMode.TUTOR:
        return True
    return ended


def should_show_explanation_for_session(session: PracticeSession) -> bool:
    return should_show_explanation(session.mode, session.ended_at is not None)


def require_question_state(session: PracticeSession, question_id: str) -> QuestionState:
    """Return the per-question state, or raise NotFoundError if not in session."""
    state = session.state_for(question_id)
    if state is None:
        raise NotFoundError("Question is not part of this practice session")
    return state


def ensure_can_answer(session: PracticeSession) -> None:
    """Answers are accepted until the session ends.

    Raises:
        ConflictError: If the session has ended.
    """
    if derive_session_state(session) == SessionState.ENDED:
        raise ConflictError("Practice session already ended")


def can_mark_for_review(session: PracticeSession) -> bool:
    """Check whether a mark-for-review change applies to this session.

    Returns:
        False for tutor sessions, where marking is a silent no-op.
        True for exam sessions in progress.

    Raises:
        ConflictError: For exam sessions that are in review or ended.
    """
    if session.mode != PracticeMode.EXAM:
        return False

    state = derive_session_state(session)
    if state != SessionState.IN_PROGRESS:
        raise ConflictError(
            f"Cannot change review marks while session is {state.value}"
        )
    return True


def ensure_can_enter_review(session: PracticeSession) -> None:
    """Only exam sessions in progress may enter review.

    Raises:
        ConflictError: For tutor sessions or sessions not in progress.
    """
    if session.mode != PracticeMode.EXAM:
        raise ConflictError("Review is only available in exam mode")

    state = derive_session_state(session)
    if state != SessionState.IN_PROGRESS:
        raise ConflictError(f"Cannot enter review while session is {state.value}")


def ensure_can_end(session: PracticeSession) -> None:
    """Raises ConflictError if the session already ended."""
    if derive_session_state(session) == SessionState.ENDED:
        raise ConflictError("Practice session already ended")


def compute_session_progress(
    session: PracticeSession, answered_count: int
) -> SessionProgress:
    """Compute progress through the session's fixed question list.

    Args:
        session: The session.
        answered_count: Distinct session questions answered so far.

    Returns:
        SessionProgress with current clamped to [0, total].
    """
    total = len(session.question_ids)
    safe_count = max(0, answered_count)
    return SessionProgress(
        current=min(safe_count, total),
        total=total,
        is_complete=safe_count >= total,
    )


def compute_session_totals(
    session: PracticeSession, ended_at: datetime | None = None
) -> SessionTotals:
    """Totals from the latest answer of each session question.

    Args:
        session: The session.
        ended_at: End time to measure duration to. Defaults to the
            session's own ended_at, and to zero duration if neither is set.
    """
    answered_states = [s for s in session.question_states if s.is_answered]
    answered = len(answered_states)
    correct = sum(1 for s in answered_states if s.latest_is_correct is True)

    end = ended_at or session.ended_at
    duration = whole_seconds_between(session.started_at, end) if end else 0

    return SessionTotals(
        answered=answered,
        correct=correct,
        accuracy=compute_accuracy(answered, correct),
        duration_seconds=duration,
    )


def build_review_rows(
    session: PracticeSession,
    questions_by_id: Mapping[str, Question],
) -> list[ReviewRow]:
    """Build the per-question review summary in session order.

    Args:
        session: The session under review.
        questions_by_id: Published questions keyed by id. Missing ids
            produce unavailable rows.

    Returns:
        One row per session question. Correctness is withheld while an
        exam session has not ended.
    """
    reveal = should_show_explanation_for_session(session)
    rows = []
    for index, state in enumerate(session.question_states):
        rows.append(
            ReviewRow(
                question_id=state.question_id,
                order=index + 1,
                is_answered=state.is_answered,
                is_correct=state.latest_is_correct if reveal else None,
                marked_for_review=state.marked_for_review,
                question=questions_by_id.get(state.question_id),
            )
        )
    return rows
