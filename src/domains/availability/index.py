# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher availability lookups.

A teacher is available at an instant when a weekly slot covers the
instant's day and time, and no one-off unavailability exists for that date.
The index is built once from stored records and is read-only afterwards.

Example:
    >>> index = await AvailabilityIndex.load(db, ["teacher-1"])
    >>> index.is_available("teacher-1", datetime(2024, 1, 8, 9, 0))
    True
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import AvailabilitySlot, Unavailability
from src.utils.datetime import portal_weekday


@dataclass(frozen=True)
class WeeklyWindow:
    """A weekly time window on one day.

    Attributes:
        day_of_week: 0 for Sunday through 6 for Saturday.
        start_time: Window opens (inclusive).
        end_time: Window closes (exclusive).
    """

    day_of_week: int
    start_time: time
    end_time: time

    def covers(self, instant: datetime) -> bool:
        """Check whether the instant falls inside this window."""
        if portal_weekday(instant) != self.day_of_week:
            return False
        return self.start_time <= instant.time() < self.end_time


class AvailabilityIndex:
    """In-memory index of weekly slots and blocked dates per teacher."""

    def __init__(
        self,
        slots: Iterable[AvailabilitySlot],
        unavailability: Iterable[Unavailability] = (),
    ) -> None:
        """Build the index.

        Args:
            slots: Weekly availability slot records.
            unavailability: One-off unavailability records.
        """
        self._windows: dict[str, list[WeeklyWindow]] = defaultdict(list)
        self._blocked: dict[str, set[date]] = defaultdict(set)

        for slot in slots:
            self._windows[slot.teacher_id].append(
                WeeklyWindow(slot.day_of_week, slot.start_time, slot.end_time)
            )
        for entry in unavailability:
            self._blocked[entry.teacher_id].add(entry.date)

    @classmethod
    async def load(cls, db: AsyncSession, teacher_ids: Iterable[str]) -> "AvailabilityIndex":
        """Load the index for the given teachers.

        Args:
            db: Database session.
            teacher_ids: Teachers to index.

        Returns:
            Populated AvailabilityIndex.
        """
        ids = list(set(teacher_ids))
        slots = await db.execute(
            select(AvailabilitySlot).where(AvailabilitySlot.teacher_id.in_(ids))
        )
        blocked = await db.execute(
            select(Unavailability).where(Unavailability.teacher_id.in_(ids))
        )
        return cls(slots.scalars().all(), blocked.scalars().all())

    def is_available(self, teacher_id: str, instant: datetime) -> bool:
        """Check whether a teacher can take a session at an instant.

        Args:
            teacher_id: Teacher identifier.
            instant: Naive local timestamp.

        Returns:
            True if a weekly slot covers the instant and the date is not
            blocked.
        """
        if self.is_blocked(teacher_id, instant.date()):
            return False
        return any(window.covers(instant) for window in self._windows.get(teacher_id, ()))

    def is_blocked(self, teacher_id: str, day: date) -> bool:
        """Check whether a teacher has marked a date as unavailable."""
        return day in self._blocked.get(teacher_id, ())
