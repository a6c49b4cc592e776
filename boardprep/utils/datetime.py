# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for boardprep.

This module provides standardized datetime operations so that every
timestamp flowing through the engine is timezone-aware UTC.

Design Decisions:
-----------------
1. All timestamps are UTC
2. All Python datetimes are timezone-aware (with timezone.utc)
3. Services receive a clock callable instead of reading the time directly

Usage:
------
    from boardprep.utils.datetime import utc_now

    # As the default clock of a service
    service = PracticeService(..., now=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to timezone-aware UTC, assuming UTC if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_epoch_ms(dt: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    return int(to_utc(dt).timestamp() * 1000)


def whole_seconds_between(start: datetime, end: datetime) -> int:
    """Whole seconds elapsed from start to end, never negative."""
    elapsed = (to_utc(end) - to_utc(start)).total_seconds()
    return max(0, int(elapsed))


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 string.

    Args:
        dt: Datetime to format.

    Returns:
        ISO 8601 formatted string or None.
    """
    if dt is None:
        return None
    return to_utc(dt).isoformat()


def parse_iso(iso_string: str | None) -> datetime | None:
    """Parse an ISO 8601 datetime string.

    Args:
        iso_string: ISO 8601 formatted string.

    Returns:
        Timezone-aware UTC datetime or None.
    """
    if iso_string is None:
        return None

    dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    return to_utc(dt)
