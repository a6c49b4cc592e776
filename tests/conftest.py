# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across the unit tests:
- A controllable clock
- A small published question bank
- In-memory repositories and wired services
"""

from collections.abc import Iterator
from datetime import timedelta

import pytest

from boardprep.api.dependencies import ActionDependencies, build_dependencies
from boardprep.core.config.settings import (
    IdempotencySettings,
    PracticeSettings,
    Settings,
    clear_settings_cache,
)
from boardprep.domains.practice.service import PracticeService
from boardprep.models.common import (
    QuestionDifficulty,
    QuestionStatus,
    SubscriptionPlan,
    SubscriptionStatus,
    TagKind,
)
from boardprep.models.entities import Question, Subscription, Tag
from fakes import (
    OTHER_USER_ID,
    USER_ID,
    FakeClock,
    InMemoryAttemptRepository,
    InMemoryBookmarkRepository,
    InMemoryIdempotencyKeyRepository,
    InMemoryPracticeSessionRepository,
    InMemoryQuestionRepository,
    InMemorySubscriptionRepository,
    InMemoryTagRepository,
    make_question,
)


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Iterator[None]:
    """Make every test start from freshly loaded settings."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def questions() -> list[Question]:
    return [
        make_question("q1", correct_index=0, tag_slugs=("cardio",)),
        make_question("q2", correct_index=1, difficulty=QuestionDifficulty.EASY),
        make_question("q3", correct_index=2, tag_slugs=("cardio",)),
        make_question("q4", correct_index=3, difficulty=QuestionDifficulty.HARD),
        make_question("q5", status=QuestionStatus.DRAFT),
    ]


@pytest.fixture
def question_repo(questions: list[Question]) -> InMemoryQuestionRepository:
    return InMemoryQuestionRepository(questions)


@pytest.fixture
def attempt_repo() -> InMemoryAttemptRepository:
    return InMemoryAttemptRepository()


@pytest.fixture
def session_repo() -> InMemoryPracticeSessionRepository:
    return InMemoryPracticeSessionRepository()


@pytest.fixture
def idempotency_repo() -> InMemoryIdempotencyKeyRepository:
    return InMemoryIdempotencyKeyRepository()


@pytest.fixture
def bookmark_repo(clock: FakeClock) -> InMemoryBookmarkRepository:
    return InMemoryBookmarkRepository(now=clock)


@pytest.fixture
def subscription_repo(clock: FakeClock) -> InMemorySubscriptionRepository:
    return InMemorySubscriptionRepository(
        [
            Subscription(
                user_id=USER_ID,
                plan=SubscriptionPlan.MONTHLY,
                status=SubscriptionStatus.ACTIVE,
                current_period_end=clock.now + timedelta(days=10),
            ),
            Subscription(
                user_id=OTHER_USER_ID,
                plan=SubscriptionPlan.ANNUAL,
                status=SubscriptionStatus.TRIALING,
                current_period_end=clock.now + timedelta(days=10),
            ),
        ]
    )


@pytest.fixture
def tag_repo() -> InMemoryTagRepository:
    return InMemoryTagRepository(
        [
            Tag(id="tag-cardio", slug="cardio", name="Cardiology", kind=TagKind.TOPIC),
            Tag(id="tag-opioids", slug="opioids", name="Opioids", kind=TagKind.SUBSTANCE),
            Tag(id="tag-medicine", slug="medicine", name="Medicine", kind=TagKind.DOMAIN),
            Tag(id="tag-asthma", slug="asthma", name="Asthma", kind=TagKind.TOPIC),
        ]
    )


@pytest.fixture
def practice_settings() -> PracticeSettings:
    return PracticeSettings()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="development",
        idempotency=IdempotencySettings(max_wait_seconds=0.05, poll_interval_seconds=0.01),
    )


@pytest.fixture
def practice_service(
    question_repo: InMemoryQuestionRepository,
    attempt_repo: InMemoryAttemptRepository,
    session_repo: InMemoryPracticeSessionRepository,
    practice_settings: PracticeSettings,
    clock: FakeClock,
) -> PracticeService:
    return PracticeService(
        question_repo, attempt_repo, session_repo, practice_settings, clock
    )


@pytest.fixture
def deps(
    question_repo: InMemoryQuestionRepository,
    attempt_repo: InMemoryAttemptRepository,
    session_repo: InMemoryPracticeSessionRepository,
    subscription_repo: InMemorySubscriptionRepository,
    bookmark_repo: InMemoryBookmarkRepository,
    idempotency_repo: InMemoryIdempotencyKeyRepository,
    tag_repo: InMemoryTagRepository,
    settings: Settings,
    clock: FakeClock,
) -> ActionDependencies:
    return build_dependencies(
        question_repo,
        attempt_repo,
        session_repo,
        subscription_repo,
        bookmark_repo,
        idempotency_repo,
        tag_repo,
        settings=settings,
        now=clock,
    )
