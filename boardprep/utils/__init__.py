# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for boardprep.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from boardprep.utils.datetime import (
    format_iso,
    parse_iso,
    to_epoch_ms,
    to_utc,
    utc_now,
    whole_seconds_between,
)
from boardprep.utils.logging import bind_context, clear_context, get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "to_utc",
    "to_epoch_ms",
    "whole_seconds_between",
    "format_iso",
    "parse_iso",
]
