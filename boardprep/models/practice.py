# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request and response models for practice actions.

This module defines Pydantic models for the practice flow:
- StartSessionRequest/Response: Start a tutor or exam session
- GetNextQuestionRequest / NextQuestionResponse: Serve the next question
- SubmitAnswerRequest/Response: Grade and record an answer
- Mark-for-review, enter-review and end-session requests and responses
- Session review, incomplete-session and history read models

Requests reject unknown fields. Configurable limits (maximum question
count, filter counts, page size) are enforced by the services from
PracticeSettings, not here.
"""

from datetime import datetime
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator

from boardprep.models.common import (
    PracticeMode,
    QuestionDifficulty,
    SessionState,
)

EntityId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
IdempotencyKey = Annotated[str, StringConstraints(min_length=1, max_length=200)]
TagSlug = Annotated[str, StringConstraints(min_length=1)]


class RequestModel(BaseModel):
    """Base for action inputs: unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# Requests
# =============================================================================


class QuestionFilters(RequestModel):
    """Candidate pool filters. Empty lists mean no filtering."""

    tag_slugs: list[TagSlug] = Field(default_factory=list)
    difficulties: list[QuestionDifficulty] = Field(default_factory=list)


class StartSessionRequest(RequestModel):
    """Start a practice session."""

    mode: PracticeMode
    count: int = Field(ge=1, description="Number of questions to draw")
    tag_slugs: list[TagSlug] = Field(default_factory=list)
    difficulties: list[QuestionDifficulty] = Field(default_factory=list)
    idempotency_key: IdempotencyKey | None = None


class GetNextQuestionRequest(RequestModel):
    """Ask for the next question of a session, or of ad-hoc practice.

    Exactly one of session_id and filters must be given.
    """

    session_id: EntityId | None = None
    filters: QuestionFilters | None = None

    @model_validator(mode="after")
    def validate_target(self) -> Self:
        if (self.session_id is None) == (self.filters is None):
            raise ValueError("Provide either session_id or filters")
        return self


class SubmitAnswerRequest(RequestModel):
    """Submit an answer to a question, optionally inside a session."""

    question_id: EntityId
    choice_id: EntityId
    idempotency_key: IdempotencyKey
    time_spent_seconds: int | None = Field(
        default=None,
        description="Seconds spent on the question; clamped to the allowed range",
    )
    session_id: EntityId | None = None


class ToggleMarkForReviewRequest(RequestModel):
    session_id: EntityId
    question_id: EntityId
    idempotency_key: IdempotencyKey | None = None


class SetMarkForReviewRequest(RequestModel):
    session_id: EntityId
    question_id: EntityId
    marked_for_review: bool
    idempotency_key: IdempotencyKey | None = None


class SessionCommandRequest(RequestModel):
    """Enter review or end a session."""

    session_id: EntityId
    idempotency_key: IdempotencyKey | None = None


class EmptyRequest(RequestModel):
    """Input of actions that take no arguments."""


class SessionLookupRequest(RequestModel):
    session_id: EntityId


class PageRequest(RequestModel):
    """Offset pagination."""

    limit: int = Field(default=20, ge=1)
    offset: int = Field(default=0, ge=0)


# =============================================================================
# Responses
# =============================================================================


class StartSessionResponse(BaseModel):
    session_id: str
    mode: PracticeMode
    question_count: int


class ChoiceResponse(BaseModel):
    """A choice in display order, without the answer key."""

    id: str
    label: str = Field(description="Display label A-E in shuffled order")
    text_md: str
    sort_order: int


class SessionPosition(BaseModel):
    """Where a served question sits in its session."""

    session_id: str
    mode: PracticeMode
    index: int = Field(description="0-based count of answered session questions")
    total: int


class NextQuestionResponse(BaseModel):
    question_id: str
    slug: str
    stem_md: str
    difficulty: QuestionDifficulty
    choices: list[ChoiceResponse]
    session: SessionPosition | None = None


class ChoiceExplanation(BaseModel):
    choice_id: str
    display_label: str
    text_md: str
    is_correct: bool
    explanation_md: str | None = None


class SubmitAnswerResponse(BaseModel):
    """Outcome of a submitted answer.

    In exam sessions that have not ended, only attempt_id is populated;
    correctness and explanations are withheld.
    """

    attempt_id: str
    is_correct: bool | None = None
    correct_choice_id: str | None = None
    explanation_md: str | None = None
    choice_explanations: list[ChoiceExplanation] = Field(default_factory=list)


class MarkForReviewResponse(BaseModel):
    question_id: str
    marked_for_review: bool


class ReviewRowResponse(BaseModel):
    """One line of the session review.

    stem_md and difficulty are None when the question is unavailable.
    """

    question_id: str
    order: int = Field(description="1-based position in the session")
    is_available: bool
    is_answered: bool
    is_correct: bool | None = None
    marked_for_review: bool
    stem_md: str | None = None
    difficulty: QuestionDifficulty | None = None


class SessionReviewResponse(BaseModel):
    session_id: str
    mode: PracticeMode
    state: SessionState
    total_count: int
    answered_count: int
    marked_count: int
    rows: list[ReviewRowResponse]


class SessionTotalsResponse(BaseModel):
    answered: int
    correct: int
    accuracy: float = Field(ge=0.0, le=1.0)
    duration_seconds: int


class EndSessionResponse(BaseModel):
    session_id: str
    ended_at: datetime
    totals: SessionTotalsResponse


class IncompleteSessionResponse(BaseModel):
    session_id: str
    mode: PracticeMode
    state: SessionState
    answered_count: int
    total_count: int
    started_at: datetime


class SessionHistoryRow(BaseModel):
    session_id: str
    mode: PracticeMode
    question_count: int
    answered: int
    correct: int
    accuracy: float
    duration_seconds: int
    started_at: datetime
    ended_at: datetime


class SessionHistoryResponse(BaseModel):
    rows: list[SessionHistoryRow]
    total: int
    limit: int
    offset: int
