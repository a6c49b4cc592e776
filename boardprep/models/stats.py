# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Response models for learner statistics and missed questions."""

from datetime import datetime

from pydantic import BaseModel, Field

from boardprep.models.common import QuestionDifficulty


class RecentActivityRow(BaseModel):
    """A recent attempt. Question fields are None when it is unavailable."""

    is_available: bool
    attempt_id: str
    answered_at: datetime
    question_id: str
    is_correct: bool
    slug: str | None = None
    stem_md: str | None = None
    difficulty: QuestionDifficulty | None = None


class UserStatsResponse(BaseModel):
    """Dashboard statistics.

    Accuracies are fractions in [0, 1]. The streak counts consecutive UTC
    days with at least one attempt, ending today.
    """

    total_answered: int
    accuracy_overall: float = Field(ge=0.0, le=1.0)
    answered_last_7_days: int
    accuracy_last_7_days: float = Field(ge=0.0, le=1.0)
    current_streak_days: int
    recent_activity: list[RecentActivityRow]


class MissedQuestionRow(BaseModel):
    is_available: bool
    question_id: str
    last_answered_at: datetime
    slug: str | None = None
    stem_md: str | None = None
    difficulty: QuestionDifficulty | None = None


class MissedQuestionsResponse(BaseModel):
    rows: list[MissedQuestionRow]
    limit: int
    offset: int
    total_count: int
