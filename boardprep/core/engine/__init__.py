# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pure practice engine rules.

Everything in this package is synchronous, deterministic and free of I/O.
Time is always passed in by the caller.
"""

from boardprep.core.engine.choices import ChoiceView, build_choice_views
from boardprep.core.engine.entitlement import is_entitled
from boardprep.core.engine.grading import GradeResult, grade_answer
from boardprep.core.engine.selection import (
    first_unanswered_question_id,
    select_next_question_id,
)
from boardprep.core.engine.session import (
    ReviewRow,
    SessionProgress,
    SessionTotals,
    build_review_rows,
    can_mark_for_review,
    compute_session_progress,
    compute_session_totals,
    derive_session_state,
    ensure_can_answer,
    ensure_can_end,
    ensure_can_enter_review,
    should_show_explanation,
    should_show_explanation_for_session,
)
from boardprep.core.engine.shuffle import (
    create_question_seed,
    create_seed,
    mulberry32,
    shuffle_with_seed,
)
from boardprep.core.engine.statistics import (
    compute_accuracy,
    compute_streak,
    filter_attempts_in_window,
)

__all__ = [
    # Grading
    "GradeResult",
    "grade_answer",
    # Shuffling
    "create_seed",
    "create_question_seed",
    "mulberry32",
    "shuffle_with_seed",
    "ChoiceView",
    "build_choice_views",
    # Selection
    "select_next_question_id",
    "first_unanswered_question_id",
    # Session rules
    "SessionProgress",
    "SessionTotals",
    "ReviewRow",
    "derive_session_state",
    "should_show_explanation",
    "should_show_explanation_for_session",
    "ensure_can_answer",
    "can_mark_for_review",
    "ensure_can_enter_review",
    "ensure_can_end",
    "compute_session_progress",
    "compute_session_totals",
    "build_review_rows",
    # Statistics
    "compute_accuracy",
    "compute_streak",
    "filter_attempts_in_window",
    # Entitlement
    "is_entitled",
]
