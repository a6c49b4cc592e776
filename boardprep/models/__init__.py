# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Models for boardprep.

- common: Enums and closed value sets
- entities: Immutable domain snapshots exchanged with repositories
- practice, stats, bookmark: Pydantic request/response models of the actions
"""

from boardprep.models.common import (
    CHOICE_LABELS,
    ENTITLED_STATUSES,
    PracticeMode,
    QuestionDifficulty,
    QuestionStatus,
    SessionState,
    SubscriptionPlan,
    SubscriptionStatus,
    TagKind,
)
from boardprep.models.entities import (
    Attempt,
    Bookmark,
    Choice,
    IdempotencyErrorRecord,
    IdempotencyKeyRecord,
    MissedQuestion,
    PracticeSession,
    Question,
    QuestionState,
    SessionPage,
    Subscription,
    Tag,
)

__all__ = [
    # Enums and constants
    "CHOICE_LABELS",
    "ENTITLED_STATUSES",
    "PracticeMode",
    "QuestionDifficulty",
    "QuestionStatus",
    "SessionState",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "TagKind",
    # Entities
    "Attempt",
    "Bookmark",
    "Choice",
    "IdempotencyErrorRecord",
    "IdempotencyKeyRecord",
    "MissedQuestion",
    "PracticeSession",
    "Question",
    "QuestionState",
    "SessionPage",
    "Subscription",
    "Tag",
]
