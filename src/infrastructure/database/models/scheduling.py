# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session, availability and cancellation request models.

Sessions are never deleted. Cancelling one only changes its status so the
schedule keeps a full history. Sessions carry a version counter like
enrollments: two transitions that read the same Scheduled row cannot both
commit.
"""

from datetime import date, datetime, time

from sqlalchemy import Date, DateTime, Index, Integer, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.common import CancellationStatus, SessionStatus, SessionType
from src.utils.datetime import local_now


class TutoringSession(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A scheduled tutoring session, one-off or part of a recurring batch."""

    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_teacher_start", "teacher_id", "start"),
        Index("ix_sessions_student_start", "student_id", "start"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    start: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    student_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False)
    program_id: Mapped[str] = mapped_column(String(36), nullable=False)
    curriculum_item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=SessionStatus.SCHEDULED.value)
    session_type: Mapped[str] = mapped_column(String(40), nullable=False, default=SessionType.CURRICULUM.value)
    recurring_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    session_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    parent_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    private_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    prospect_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class AvailabilitySlot(UUIDPrimaryKeyMixin, Base):
    """A weekly recurring window when a teacher can take sessions.

    ``day_of_week`` uses 0 for Sunday through 6 for Saturday.
    """

    __tablename__ = "availability_slots"

    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)


class Unavailability(UUIDPrimaryKeyMixin, Base):
    """A one-off day off that blocks a teacher regardless of weekly slots."""

    __tablename__ = "unavailability"

    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)


class CancellationRequest(UUIDPrimaryKeyMixin, Base):
    """A student or parent's request to cancel an upcoming session."""

    __tablename__ = "cancellation_requests"

    session_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=local_now)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CancellationStatus.PENDING.value)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    resolved_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
