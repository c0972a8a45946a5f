# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignments, announcements and message templates.

These tables belong to collaborating features. The engine only appends to
them when a session transition calls for it.
"""

from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.common import AssignmentStatus
from src.utils.datetime import local_now


class Assignment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Homework handed to a student for a curriculum item."""

    __tablename__ = "assignments"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    enrollment_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    program_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default=AssignmentStatus.NOT_SUBMITTED.value)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    curriculum_item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    template_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class MessageTemplate(Base):
    """Reusable message body with ``[Placeholder]`` variables."""

    __tablename__ = "message_templates"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)


class Announcement(UUIDPrimaryKeyMixin, Base):
    """A message shown to targeted users on their portal dashboard."""

    __tablename__ = "announcements"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    target_user_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    template_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    date_sent: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=local_now)
    sent_by_id: Mapped[str] = mapped_column(String(64), nullable=False, default="system-auto")
