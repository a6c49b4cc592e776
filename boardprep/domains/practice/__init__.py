# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Practice domain package.

This package provides practice session management including:
- Session start with a per-user shuffled question list
- Next-question serving for sessions and ad-hoc practice
- Answer grading with tutor/exam explanation gating
- Exam review marks, the review stage and session completion
"""

from boardprep.domains.practice.service import PracticeService

__all__ = [
    "PracticeService",
]
