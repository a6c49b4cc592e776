# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for boardprep.

Each domain module provides a service that orchestrates the pure engine
rules and the repository ports.

Domains:
    practice: Practice session lifecycle, questions and answers.
    stats: Dashboard statistics and missed questions.
    bookmark: Question bookmarks.
    subscription: Entitlement checks.
    tag: Tag taxonomy reads.
"""
