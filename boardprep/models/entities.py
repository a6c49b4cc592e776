# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain entities for the practice engine.

Entities are immutable snapshots handed to the engine by repository
collaborators. A question fetched for a session never changes under it;
updates produce new snapshots through the repository ports.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from boardprep.models.common import (
    PracticeMode,
    QuestionDifficulty,
    QuestionStatus,
    SubscriptionPlan,
    SubscriptionStatus,
    TagKind,
)


@dataclass(frozen=True)
class Choice:
    """A single answer option of a multiple-choice question.

    Attributes:
        id: Choice identifier.
        question_id: Owning question identifier.
        label: Authoring label (A-E).
        text_md: Choice text in markdown.
        is_correct: Whether this is the keyed answer.
        sort_order: Authoring order, used as the stable pre-shuffle order.
        explanation_md: Optional per-choice explanation.
    """

    id: str
    question_id: str
    label: str
    text_md: str
    is_correct: bool
    sort_order: int
    explanation_md: str | None = None


@dataclass(frozen=True)
class Tag:
    """Taxonomy tag attached to questions."""

    id: str
    slug: str
    name: str
    kind: TagKind


@dataclass(frozen=True)
class Question:
    """A single-best-answer question.

    Attributes:
        id: Question identifier.
        slug: URL-safe unique slug.
        stem_md: Question stem in markdown.
        explanation_md: Overall explanation in markdown.
        difficulty: Difficulty level.
        status: Publication status.
        choices: Ordered answer options.
        tags: Attached taxonomy tags.
        created_at: Creation time (UTC).
        updated_at: Last update time (UTC).
    """

    id: str
    slug: str
    stem_md: str
    explanation_md: str
    difficulty: QuestionDifficulty
    status: QuestionStatus
    choices: tuple[Choice, ...]
    tags: tuple[Tag, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Attempt:
    """One recorded answer submission. Attempts are append-only."""

    id: str
    user_id: str
    question_id: str
    practice_session_id: str | None
    selected_choice_id: str
    is_correct: bool
    time_spent_seconds: int
    answered_at: datetime


@dataclass(frozen=True)
class QuestionState:
    """Per-question state inside a practice session.

    Attributes:
        question_id: Question identifier.
        marked_for_review: Exam-mode review flag.
        latest_selected_choice_id: Most recent answer, None if unanswered.
        latest_is_correct: Correctness of the most recent answer.
        latest_answered_at: Time of the most recent answer.
    """

    question_id: str
    marked_for_review: bool = False
    latest_selected_choice_id: str | None = None
    latest_is_correct: bool | None = None
    latest_answered_at: datetime | None = None

    @property
    def is_answered(self) -> bool:
        """Whether the question has been answered at least once."""
        return self.latest_selected_choice_id is not None


@dataclass(frozen=True)
class PracticeSession:
    """A practice session owned by a single user.

    The question list is fixed at creation. A session is ended logically by
    setting ended_at, which happens exactly once. review_started_at marks an
    exam session that entered the review stage.
    """

    id: str
    user_id: str
    mode: PracticeMode
    question_ids: tuple[str, ...]
    question_states: tuple[QuestionState, ...]
    started_at: datetime
    tag_filters: tuple[str, ...] = ()
    difficulty_filters: tuple[QuestionDifficulty, ...] = ()
    review_started_at: datetime | None = None
    ended_at: datetime | None = None

    def state_for(self, question_id: str) -> QuestionState | None:
        """Return the per-question state for a question id, if it belongs."""
        for state in self.question_states:
            if state.question_id == question_id:
                return state
        return None

    def with_state(self, new_state: QuestionState) -> "PracticeSession":
        """Return a copy with one per-question state replaced."""
        states = tuple(
            new_state if s.question_id == new_state.question_id else s
            for s in self.question_states
        )
        return replace(self, question_states=states)


@dataclass(frozen=True)
class Subscription:
    """A user's subscription snapshot. Entitlement is derived from it."""

    user_id: str
    plan: SubscriptionPlan
    status: SubscriptionStatus
    current_period_end: datetime
    cancel_at_period_end: bool = False
    id: str | None = None


@dataclass(frozen=True)
class Bookmark:
    """A question saved by a user."""

    user_id: str
    question_id: str
    created_at: datetime


@dataclass(frozen=True)
class IdempotencyErrorRecord:
    """Stored failure of an idempotent action."""

    code: str
    message: str
    field_errors: dict[str, list[str]] | None = None


@dataclass(frozen=True)
class IdempotencyKeyRecord:
    """Stored outcome of an idempotent action.

    After the first execution completes exactly one of result and error is
    populated. Both are empty while the first execution is in flight.
    """

    user_id: str
    action: str
    key: str
    expires_at: datetime
    result: Any = None
    error: IdempotencyErrorRecord | None = None

    @property
    def is_pending(self) -> bool:
        """Whether the owning execution has not stored an outcome yet."""
        return self.result is None and self.error is None


@dataclass(frozen=True)
class MissedQuestion:
    """A question whose most recent attempt by the user was incorrect."""

    question_id: str
    answered_at: datetime


@dataclass
class SessionPage:
    """A page of completed sessions."""

    rows: list[PracticeSession] = field(default_factory=list)
    total: int = 0
