# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bookmark domain package."""

from boardprep.domains.bookmark.service import BookmarkService

__all__ = [
    "BookmarkService",
]
