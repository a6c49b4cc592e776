# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Answer grading against a question's answer key."""

from dataclasses import dataclass

from boardprep.core.errors import DomainError, DomainErrorCode
from boardprep.models.entities import Question


@dataclass(frozen=True)
class GradeResult:
    """Outcome of grading a selected choice.

    Attributes:
        is_correct: Whether the selected choice is the keyed answer.
        correct_choice_id: Identifier of the keyed answer.
        correct_label: Authoring label of the keyed answer.
    """

    is_correct: bool
    correct_choice_id: str
    correct_label: str


def grade_answer(question: Question, selected_choice_id: str) -> GradeResult:
    """Grade an answer.

    Args:
        question: The question being answered.
        selected_choice_id: The choice the learner selected.

    Returns:
        The grading outcome.

    Raises:
        DomainError: INVALID_CHOICE if the choice is not part of the question,
            INVALID_QUESTION if the question does not have exactly one
            correct choice.
    """
    selected = next((c for c in question.choices if c.id == selected_choice_id), None)
    if selected is None:
        raise DomainError(
            DomainErrorCode.INVALID_CHOICE,
            f"Choice {selected_choice_id} does not belong to question {question.id}",
        )

    correct_choices = [c for c in question.choices if c.is_correct]
    if len(correct_choices) != 1:
        raise DomainError(
            DomainErrorCode.INVALID_QUESTION,
            f"Question {question.id} must have exactly 1 correct choice "
            f"(found {len(correct_choices)})",
        )

    correct = correct_choices[0]
    return GradeResult(
        is_correct=selected.id == correct.id,
        correct_choice_id=correct.id,
        correct_label=correct.label,
    )
