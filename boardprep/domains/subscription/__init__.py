# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subscription domain package.

This package provides the entitlement gate applied to every practice,
question and bookmark action.
"""

from boardprep.domains.subscription.service import EntitlementService

__all__ = [
    "EntitlementService",
]
