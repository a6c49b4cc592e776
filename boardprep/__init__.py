"""boardprep.

Practice session engine for a board-exam preparation platform: question
selection, per-user choice shuffling, grading, tutor/exam session flow,
idempotent mutations and learner statistics.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
