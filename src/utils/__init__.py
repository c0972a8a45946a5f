# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for the scheduling engine.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Naive local-time helpers used by the scheduler
"""

from src.utils.datetime import (
    add_weeks,
    days_from_now,
    format_date,
    local_now,
    overlaps,
    portal_weekday,
    to_naive,
)
from src.utils.logging import bind_context, clear_context, get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "local_now",
    "to_naive",
    "add_weeks",
    "days_from_now",
    "portal_weekday",
    "overlaps",
    "format_date",
]
