# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enums and value objects for the practice engine.

This module defines the closed value sets used across the engine:
- Practice modes and session lifecycle states
- Question difficulty and publication status
- Choice display labels
- Subscription plans and statuses (mirroring Stripe)
"""

from enum import Enum


class PracticeMode(str, Enum):
    """Practice session modes.

    - TUTOR: correctness and explanations are shown after every answer
    - EXAM: correctness is withheld until the session has ended
    """

    TUTOR = "tutor"
    EXAM = "exam"


class SessionState(str, Enum):
    """Lifecycle state of a practice session.

    The state is derived from the persisted session, never stored directly.
    AWAITING_REVIEW is reachable only in exam mode.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    AWAITING_REVIEW = "awaiting_review"
    ENDED = "ended"


class QuestionDifficulty(str, Enum):
    """Question difficulty levels."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionStatus(str, Enum):
    """Question publication status."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class TagKind(str, Enum):
    """Taxonomy kinds used to classify questions."""

    DOMAIN = "domain"
    TOPIC = "topic"
    SUBSTANCE = "substance"
    TREATMENT = "treatment"
    DIAGNOSIS = "diagnosis"


class SubscriptionPlan(str, Enum):
    """Billing plans."""

    MONTHLY = "monthly"
    ANNUAL = "annual"


class SubscriptionStatus(str, Enum):
    """Subscription statuses as reported by the payment processor."""

    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    PAUSED = "paused"


# Display labels in presentation order. A question never has more choices.
CHOICE_LABELS: tuple[str, ...] = ("A", "B", "C", "D", "E")

ENTITLED_STATUSES: frozenset[SubscriptionStatus] = frozenset(
    {SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING}
)


def is_valid_choice_label(value: str) -> bool:
    """Check whether a string is one of the display labels A-E."""
    return value in CHOICE_LABELS


def is_visible_status(status: QuestionStatus) -> bool:
    """Only published questions are visible to learners."""
    return status == QuestionStatus.PUBLISHED


def is_entitled_status(status: SubscriptionStatus) -> bool:
    """Check if a subscription status grants access to premium features."""
    return status in ENTITLED_STATUSES
