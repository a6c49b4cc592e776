# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Join history rows with the questions they reference.

Questions can be unpublished or deleted while attempts, bookmarks and
session states that reference them persist. Such rows are kept and marked
unavailable instead of failing the whole read.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TypeVar

from boardprep.models.entities import Question

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT")
OutT = TypeVar("OutT")


def index_by_id(questions: Iterable[Question]) -> dict[str, Question]:
    """Index questions by id."""
    return {question.id: question for question in questions}


def unique_question_ids(question_ids: Iterable[str]) -> list[str]:
    """Deduplicate ids, keeping first-seen order."""
    return list(dict.fromkeys(question_ids))


def enrich_with_question(
    rows: Iterable[RowT],
    get_question_id: Callable[[RowT], str],
    questions_by_id: Mapping[str, Question],
    available: Callable[[RowT, Question], OutT],
    unavailable: Callable[[RowT], OutT],
    missing_question_message: str,
) -> list[OutT]:
    """Map rows to output, flagging rows whose question is missing.

    Args:
        rows: Source rows in output order.
        get_question_id: Extracts the referenced question id.
        questions_by_id: Published questions keyed by id.
        available: Builds the output for a row with its question.
        unavailable: Builds the output for a row whose question is gone.
        missing_question_message: Warning logged for each missing question.

    Returns:
        One output per row, in input order.
    """
    enriched = []
    for row in rows:
        question_id = get_question_id(row)
        question = questions_by_id.get(question_id)
        if question is None:
            logger.warning("%s: question_id=%s", missing_question_message, question_id)
            enriched.append(unavailable(row))
            continue
        enriched.append(available(row, question))
    return enriched
