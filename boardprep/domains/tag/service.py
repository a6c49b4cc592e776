# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tag service.

Tags classify questions and back the practice filters.
"""

from boardprep.core.ports.repositories import TagRepository
from boardprep.models.catalog import TagRow, TagsResponse


class TagService:
    """Service for reading the tag taxonomy."""

    def __init__(self, tags: TagRepository) -> None:
        self.tags = tags

    async def list_tags(self) -> TagsResponse:
        """List every tag, ordered by kind then slug."""
        tags = await self.tags.list_all()
        return TagsResponse(
            rows=[
                TagRow(id=tag.id, slug=tag.slug, name=tag.name, kind=tag.kind)
                for tag in tags
            ]
        )
