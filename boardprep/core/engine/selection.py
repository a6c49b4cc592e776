# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Next-question selection.

Two policies exist and they are not interchangeable:

- select_next_question_id: ad-hoc practice over an open candidate pool.
  Unseen questions first, then the least recently answered one.
- first_unanswered_question_id: a fixed session question list. The first
  question in session order without an answer; no recycling.

Both are pure functions over data that the repositories already filtered and
ordered deterministically.
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime


def select_next_question_id(
    candidate_ids: Sequence[str],
    attempt_history: Mapping[str, datetime],
) -> str | None:
    """Select the next question for ad-hoc practice.

    Args:
        candidate_ids: Eligible question ids in deterministic order.
        attempt_history: Last answered time per question id. Missing ids
            were never attempted.

    Returns:
        The first never-attempted candidate; otherwise the candidate with the
        oldest last answer, ties broken by candidate order; None when there
        are no candidates.
    """
    for question_id in candidate_ids:
        if question_id not in attempt_history:
            return question_id

    oldest_id: str | None = None
    oldest_at: datetime | None = None
    for question_id in candidate_ids:
        answered_at = attempt_history[question_id]
        if oldest_at is None or answered_at < oldest_at:
            oldest_at = answered_at
            oldest_id = question_id

    return oldest_id


def first_unanswered_question_id(
    question_ids: Sequence[str],
    answered_question_ids: Iterable[str],
) -> str | None:
    """Return the first question in session order that has no answer.

    Args:
        question_ids: The session's fixed question order.
        answered_question_ids: Ids answered so far (any order, duplicates ok).

    Returns:
        The next question id, or None when every question is answered.
    """
    answered = set(answered_question_ids)
    for question_id in question_ids:
        if question_id not in answered:
            return question_id
    return None
