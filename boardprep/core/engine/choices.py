# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-user choice presentation.

Every user sees a stable choice order for a given question, seeded by
(user id, question id). The order is independent of the storage row order
because choices are pre-sorted by (sort_order, id) before shuffling.
"""

from dataclasses import dataclass

from boardprep.core.engine.shuffle import create_question_seed, shuffle_with_seed
from boardprep.core.errors import InternalError
from boardprep.models.common import CHOICE_LABELS
from boardprep.models.entities import Question


@dataclass(frozen=True)
class ChoiceView:
    """A choice as presented to one user.

    Attributes:
        choice_id: Underlying choice identifier.
        display_label: Label in display order (A-E), not the authoring label.
        text_md: Choice text.
        sort_order: 1-based display position.
        is_correct: Answer key flag. Only exposed once explanations are shown.
        explanation_md: Per-choice explanation.
    """

    choice_id: str
    display_label: str
    text_md: str
    sort_order: int
    is_correct: bool
    explanation_md: str | None


def build_choice_views(question: Question, user_id: str) -> list[ChoiceView]:
    """Shuffle a question's choices for a user and relabel them.

    Args:
        question: Question whose choices are presented.
        user_id: Viewing user.

    Returns:
        Choice views in display order.

    Raises:
        InternalError: If the question has more choices than labels.
    """
    if len(question.choices) > len(CHOICE_LABELS):
        raise InternalError(f"Question {question.id} has too many choices")

    seed = create_question_seed(user_id, question.id)
    stable_input = sorted(question.choices, key=lambda c: (c.sort_order, c.id))

    return [
        ChoiceView(
            choice_id=choice.id,
            display_label=CHOICE_LABELS[index],
            text_md=choice.text_md,
            sort_order=index + 1,
            is_correct=choice.is_correct,
            explanation_md=choice.explanation_md,
        )
        for index, choice in enumerate(shuffle_with_seed(stable_input, seed))
    ]
