# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Repository ports consumed by the practice engine.

The engine depends only on these abstract interfaces. Persistence
collaborators (SQL, document stores, Redis) implement them. All methods
are async; implementations must scope every per-user query to the given
user id so that a resource owned by someone else reads as missing.

Atomicity requirements that implementations must honor:
- PracticeSessionRepository.end and begin_review are compare-and-set
  operations on the stored row.
- IdempotencyKeyRepository.claim is an atomic insert-if-absent (or a
  reset of an expired record).
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from boardprep.models.common import PracticeMode, QuestionDifficulty
from boardprep.models.entities import (
    Attempt,
    Bookmark,
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


@dataclass(frozen=True)
class CandidateFilters:
    """Filters for the published candidate pool.

    Empty tuples mean no filtering on that dimension.
    """

    tag_slugs: tuple[str, ...] = ()
    difficulties: tuple[QuestionDifficulty, ...] = ()


@dataclass(frozen=True)
class NewAttempt:
    """Attempt to insert. The repository assigns the id."""

    user_id: str
    question_id: str
    practice_session_id: str | None
    selected_choice_id: str
    is_correct: bool
    time_spent_seconds: int
    answered_at: datetime


@dataclass(frozen=True)
class NewPracticeSession:
    """Session to create. The repository assigns the id.

    Per-question states start unanswered and unmarked, one per question id.
    """

    user_id: str
    mode: PracticeMode
    question_ids: tuple[str, ...]
    started_at: datetime
    tag_filters: tuple[str, ...] = ()
    difficulty_filters: tuple[QuestionDifficulty, ...] = ()


@dataclass(frozen=True)
class QuestionAnswer:
    """Latest answer to record in a session's per-question state."""

    session_id: str
    user_id: str
    question_id: str
    selected_choice_id: str
    is_correct: bool
    answered_at: datetime


class QuestionRepository(ABC):
    """Read access to published questions."""

    @abstractmethod
    async def list_published_candidate_ids(self, filters: CandidateFilters) -> list[str]:
        """List published question ids matching the filters.

        Order must be deterministic: newest created first, then id ascending.
        """
        ...

    @abstractmethod
    async def find_published_by_id(self, question_id: str) -> Question | None:
        ...

    @abstractmethod
    async def find_published_by_ids(self, question_ids: Sequence[str]) -> list[Question]:
        """Return the published subset of the given ids, in any order."""
        ...

    @abstractmethod
    async def find_published_by_slug(self, slug: str) -> Question | None:
        ...


class AttemptRepository(ABC):
    """Append-only attempt storage and the read models built on it."""

    @abstractmethod
    async def insert(self, attempt: NewAttempt) -> Attempt:
        ...

    @abstractmethod
    async def delete_by_id(self, attempt_id: str, user_id: str) -> bool:
        """Delete an attempt. Only used to compensate a failed session update.

        Returns:
            True if a row was deleted.
        """
        ...

    @abstractmethod
    async def find_by_session_id(self, session_id: str, user_id: str) -> list[Attempt]:
        ...

    @abstractmethod
    async def find_most_recent_answered_at_by_question_ids(
        self, user_id: str, question_ids: Sequence[str]
    ) -> dict[str, datetime]:
        """Map question id to the user's last answer time. Unanswered ids are absent."""
        ...

    @abstractmethod
    async def count_by_user_id(self, user_id: str) -> int:
        ...

    @abstractmethod
    async def count_correct_by_user_id(self, user_id: str) -> int:
        ...

    @abstractmethod
    async def list_answered_by_user_id_since(
        self, user_id: str, since: datetime
    ) -> list[Attempt]:
        ...

    @abstractmethod
    async def list_recent_by_user_id(self, user_id: str, limit: int) -> list[Attempt]:
        """Newest first; ties broken by attempt id."""
        ...

    @abstractmethod
    async def list_missed_questions_by_user_id(
        self, user_id: str, limit: int, offset: int
    ) -> list[MissedQuestion]:
        """Questions whose latest attempt is incorrect, newest first."""
        ...

    @abstractmethod
    async def count_missed_questions_by_user_id(self, user_id: str) -> int:
        ...


class PracticeSessionRepository(ABC):
    """Practice session storage."""

    @abstractmethod
    async def create(self, session: NewPracticeSession) -> PracticeSession:
        ...

    @abstractmethod
    async def find_by_id_and_user_id(
        self, session_id: str, user_id: str
    ) -> PracticeSession | None:
        ...

    @abstractmethod
    async def find_latest_incomplete_by_user_id(self, user_id: str) -> PracticeSession | None:
        ...

    @abstractmethod
    async def find_completed_by_user_id(
        self, user_id: str, limit: int, offset: int
    ) -> SessionPage:
        """Ended sessions, most recently ended first, with the total count."""
        ...

    @abstractmethod
    async def record_question_answer(self, answer: QuestionAnswer) -> None:
        """Overwrite the latest answer fields of one per-question state.

        Raises:
            NotFoundError: If the session or question state does not exist.
        """
        ...

    @abstractmethod
    async def set_question_marked_for_review(
        self,
        session_id: str,
        user_id: str,
        question_id: str,
        marked_for_review: bool,
    ) -> QuestionState:
        """Set the review flag of one per-question state.

        Raises:
            NotFoundError: If the session or question state does not exist.
        """
        ...

    @abstractmethod
    async def begin_review(
        self, session_id: str, user_id: str, started_at: datetime
    ) -> PracticeSession:
        """Set review_started_at only while it and ended_at are both unset.

        Raises:
            NotFoundError: If the session is not owned by the user.
            ConflictError: If the session is already in review or ended.
        """
        ...

    @abstractmethod
    async def end(self, session_id: str, user_id: str, ended_at: datetime) -> PracticeSession:
        """Set ended_at only while it is unset.

        Raises:
            NotFoundError: If the session is not owned by the user.
            ConflictError: If the session already ended.
        """
        ...


class IdempotencyKeyRepository(ABC):
    """Storage of idempotency key records keyed by (user_id, action, key)."""

    @abstractmethod
    async def claim(
        self,
        user_id: str,
        action: str,
        key: str,
        expires_at: datetime,
        now: datetime,
    ) -> bool:
        """Atomically create the record, or reset it if expired at ``now``.

        Returns:
            True if this caller owns the execution.
        """
        ...

    @abstractmethod
    async def find(
        self, user_id: str, action: str, key: str, now: datetime
    ) -> IdempotencyKeyRecord | None:
        """Return the record, or None if absent or expired at ``now``."""
        ...

    @abstractmethod
    async def store_result(self, user_id: str, action: str, key: str, result: Any) -> None:
        """Store a JSON-compatible result on a claimed record."""
        ...

    @abstractmethod
    async def store_error(
        self, user_id: str, action: str, key: str, error: IdempotencyErrorRecord
    ) -> None:
        ...

    @abstractmethod
    async def prune_expired_before(self, before: datetime, limit: int) -> int:
        """Delete up to ``limit`` records that expired before ``before``.

        Returns:
            Number of records removed.
        """
        ...


class SubscriptionRepository(ABC):
    """Read access to subscriptions."""

    @abstractmethod
    async def find_by_user_id(self, user_id: str) -> Subscription | None:
        ...


class BookmarkRepository(ABC):
    """Bookmark storage."""

    @abstractmethod
    async def exists(self, user_id: str, question_id: str) -> bool:
        ...

    @abstractmethod
    async def add(self, user_id: str, question_id: str) -> Bookmark:
        ...

    @abstractmethod
    async def remove(self, user_id: str, question_id: str) -> bool:
        """Returns True if a bookmark was removed."""
        ...

    @abstractmethod
    async def list_by_user_id(self, user_id: str) -> list[Bookmark]:
        """Newest first."""
        ...


class TagRepository(ABC):
    """Read access to the tag taxonomy."""

    @abstractmethod
    async def list_all(self) -> list[Tag]:
        """All tags, ordered by kind then slug."""
        ...
