# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for boardprep.

This package contains the core business logic and shared building blocks:
- config: Application configuration and settings
- engine: Pure grading, shuffling, selection, session and statistics rules
- ports: Repository interfaces implemented by persistence collaborators
- errors: Domain and application error hierarchy
- idempotency: At-most-once execution of mutating actions
"""
