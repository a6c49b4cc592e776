# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learner statistics service.

Builds the dashboard read model (overall and windowed accuracy, streak,
recent activity) and the missed-questions list from attempt history.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from boardprep.core.config.settings import PracticeSettings
from boardprep.core.engine.statistics import (
    compute_accuracy,
    compute_streak,
    filter_attempts_in_window,
)
from boardprep.core.errors import ValidationFailedError
from boardprep.core.ports.repositories import AttemptRepository, QuestionRepository
from boardprep.domains.enrichment import (
    enrich_with_question,
    index_by_id,
    unique_question_ids,
)
from boardprep.models.entities import Attempt, MissedQuestion, Question
from boardprep.models.practice import PageRequest
from boardprep.models.stats import (
    MissedQuestionRow,
    MissedQuestionsResponse,
    RecentActivityRow,
    UserStatsResponse,
)
from boardprep.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class StatsService:
    """Service for learner statistics.

    Attributes:
        attempts: Attempt storage.
        questions: Published question reads.
        settings: Window lengths and list limits.
    """

    def __init__(
        self,
        attempts: AttemptRepository,
        questions: QuestionRepository,
        settings: PracticeSettings | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.attempts = attempts
        self.questions = questions
        self.settings = settings or PracticeSettings()
        self._now = now

    async def get_user_stats(self, user_id: str) -> UserStatsResponse:
        """Compute dashboard statistics for a user.

        The windowed figures and the streak are both derived from one list of
        attempts covering the streak window, so the streak can never exceed
        streak_window_days.

        Args:
            user_id: The learner.

        Returns:
            Totals, accuracies, streak and recent activity.
        """
        now = self._now()
        since = now - timedelta(days=self.settings.streak_window_days)

        total_answered, correct_overall, window_attempts, recent = await asyncio.gather(
            self.attempts.count_by_user_id(user_id),
            self.attempts.count_correct_by_user_id(user_id),
            self.attempts.list_answered_by_user_id_since(user_id, since),
            self.attempts.list_recent_by_user_id(
                user_id, self.settings.recent_activity_limit
            ),
        )

        last_days = filter_attempts_in_window(
            window_attempts, self.settings.stats_window_days, now
        )
        correct_last_days = sum(1 for a in last_days if a.is_correct)

        questions = await self._load_questions(a.question_id for a in recent)

        recent_activity = enrich_with_question(
            rows=recent,
            get_question_id=lambda attempt: attempt.question_id,
            questions_by_id=questions,
            available=_recent_available,
            unavailable=_recent_unavailable,
            missing_question_message="Recent activity references missing question",
        )

        return UserStatsResponse(
            total_answered=total_answered,
            accuracy_overall=compute_accuracy(total_answered, correct_overall),
            answered_last_7_days=len(last_days),
            accuracy_last_7_days=compute_accuracy(len(last_days), correct_last_days),
            current_streak_days=compute_streak(
                (a.answered_at for a in window_attempts), now
            ),
            recent_activity=recent_activity,
        )

    async def get_missed_questions(
        self, user_id: str, page: PageRequest
    ) -> MissedQuestionsResponse:
        """Questions whose latest attempt was incorrect, newest first.

        Raises:
            ValidationFailedError: If the page size exceeds the configured limit.
        """
        if page.limit > self.settings.max_pagination_limit:
            raise ValidationFailedError(
                "Invalid input",
                field_errors={
                    "limit": [f"Must be at most {self.settings.max_pagination_limit}"]
                },
            )

        total_count, missed = await asyncio.gather(
            self.attempts.count_missed_questions_by_user_id(user_id),
            self.attempts.list_missed_questions_by_user_id(
                user_id, page.limit, page.offset
            ),
        )

        if total_count == 0 or not missed:
            return MissedQuestionsResponse(
                rows=[], limit=page.limit, offset=page.offset, total_count=total_count
            )

        questions = await self._load_questions(m.question_id for m in missed)

        rows = enrich_with_question(
            rows=missed,
            get_question_id=lambda m: m.question_id,
            questions_by_id=questions,
            available=_missed_available,
            unavailable=_missed_unavailable,
            missing_question_message="Missed question references missing question",
        )

        return MissedQuestionsResponse(
            rows=rows, limit=page.limit, offset=page.offset, total_count=total_count
        )

    async def _load_questions(self, question_ids: Iterable[str]) -> dict[str, Question]:
        ids = unique_question_ids(question_ids)
        if not ids:
            return {}
        return index_by_id(await self.questions.find_published_by_ids(ids))


def _recent_available(attempt: Attempt, question: Question) -> RecentActivityRow:
    return RecentActivityRow(
        is_available=True,
        attempt_id=attempt.id,
        answered_at=attempt.answered_at,
        question_id=attempt.question_id,
        is_correct=attempt.is_correct,
        slug=question.slug,
        stem_md=question.stem_md,
        difficulty=question.difficulty,
    )


def _recent_unavailable(attempt: Attempt) -> RecentActivityRow:
    return RecentActivityRow(
        is_available=False,
        attempt_id=attempt.id,
        answered_at=attempt.answered_at,
        question_id=attempt.question_id,
        is_correct=attempt.is_correct,
    )


def _missed_available(missed: MissedQuestion, question: Question) -> MissedQuestionRow:
    return MissedQuestionRow(
        is_available=True,
        question_id=question.id,
        last_answered_at=missed.answered_at,
        slug=question.slug,
        stem_md=question.stem_md,
        difficulty=question.difficulty,
    )


def _missed_unavailable(missed: MissedQuestion) -> MissedQuestionRow:
    return MissedQuestionRow(
        is_available=False,
        question_id=missed.question_id,
        last_answered_at=missed.answered_at,
    )
