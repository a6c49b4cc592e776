# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tag domain package."""

from boardprep.domains.tag.service import TagService

__all__ = [
    "TagService",
]
