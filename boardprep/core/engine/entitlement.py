# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subscription entitlement gate.

Entitlement is derived on every call from a freshly read subscription. It is
never cached or stored.
"""

from datetime import datetime

from boardprep.models.common import is_entitled_status
from boardprep.models.entities import Subscription
from boardprep.utils.datetime import to_utc


def is_entitled(subscription: Subscription | None, now: datetime) -> bool:
    """Check whether a subscription grants access right now.

    Args:
        subscription: The user's subscription, or None.
        now: Current time.

    Returns:
        True only for an entitling status (active, trialing) whose current
        period ends strictly after now.
    """
    if subscription is None:
        return False
    if not is_entitled_status(subscription.status):
        return False
    return to_utc(subscription.current_period_end) > to_utc(now)
