# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request and response models for question and tag lookups."""

from typing import Annotated

from pydantic import BaseModel, StringConstraints

from boardprep.models.common import TagKind
from boardprep.models.practice import RequestModel

QuestionSlug = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class QuestionBySlugRequest(RequestModel):
    """Look up a published question by its slug."""

    slug: QuestionSlug


class TagRow(BaseModel):
    id: str
    slug: str
    name: str
    kind: TagKind


class TagsResponse(BaseModel):
    rows: list[TagRow]
