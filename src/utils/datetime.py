# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the scheduling engine.

Design Decisions:
-----------------
1. Session times are naive local timestamps. No timezone database is
   consulted; a timestamp means "wall clock time at the tutoring center".
2. Days of the week follow the portal convention: 0 is Sunday, 6 is Saturday.
3. Intervals are half-open: [start, end).

Usage:
------
    from src.utils.datetime import local_now, add_weeks

    now = local_now()
    next_week = add_weeks(now, 1)
"""

from datetime import date, datetime, timedelta


def local_now() -> datetime:
    """Get current local wall-clock time as a naive datetime.

    Returns:
        Naive datetime representing the current local time.
    """
    return datetime.now().replace(microsecond=0)


def to_naive(dt: datetime) -> datetime:
    """Drop timezone information from a datetime.

    Aware values are converted to local time first so an ISO string sent with
    an offset still lands on the right wall-clock time.

    Args:
        dt: A naive or aware datetime.

    Returns:
        Naive local datetime.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def add_weeks(dt: datetime, weeks: int) -> datetime:
    """Shift a datetime by a whole number of weeks."""
    return dt + timedelta(days=7 * weeks)


def days_from_now(days: int, now: datetime | None = None) -> date:
    """Get the calendar date a number of days from now.

    Args:
        days: Number of days ahead.
        now: Reference time, defaults to local_now().

    Returns:
        The resulting date.
    """
    return ((now or local_now()) + timedelta(days=days)).date()


def portal_weekday(dt: datetime | date) -> int:
    """Get the day of week with Sunday as 0.

    Python's weekday() puts Monday at 0; the portal stores Sunday as 0.

    Example:
        >>> portal_weekday(datetime(2024, 1, 7))  # a Sunday
        0
    """
    return (dt.weekday() + 1) % 7


def overlaps(
    start: datetime,
    end: datetime,
    other_start: datetime,
    other_end: datetime,
) -> bool:
    """Check whether two half-open intervals overlap.

    Intervals that only touch (one ends exactly when the other starts)
    do not overlap.
    """
    return start < other_end and end > other_start


def format_date(dt: datetime | date) -> str:
    """Format a date as YYYY-MM-DD."""
    return dt.strftime("%Y-%m-%d")
