# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Repository ports of the practice engine."""

from boardprep.core.ports.repositories import (
    AttemptRepository,
    BookmarkRepository,
    CandidateFilters,
    IdempotencyKeyRepository,
    NewAttempt,
    NewPracticeSession,
    PracticeSessionRepository,
    QuestionAnswer,
    QuestionRepository,
    SubscriptionRepository,
    TagRepository,
)

__all__ = [
    # Inputs
    "CandidateFilters",
    "NewAttempt",
    "NewPracticeSession",
    "QuestionAnswer",
    # Ports
    "QuestionRepository",
    "AttemptRepository",
    "PracticeSessionRepository",
    "IdempotencyKeyRepository",
    "SubscriptionRepository",
    "BookmarkRepository",
    "TagRepository",
]
