# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment, credit ledger and curriculum progress models.

The enrollment row caches the ledger balance and carries a version counter.
Every balance write bumps the version, so two writers that read the same
balance cannot both commit.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.common import CurriculumStatus, EnrollmentStatus
from src.utils.datetime import local_now


class Enrollment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's registration in one program with one teacher."""

    __tablename__ = "enrollments"

    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    program_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("programs.id"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=EnrollmentStatus.ACTIVE.value)
    credits_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date_enrolled: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=local_now)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class CreditTransaction(UUIDPrimaryKeyMixin, Base):
    """One append-only entry in an enrollment's credit ledger."""

    __tablename__ = "credit_transactions"

    enrollment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("enrollments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    change: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=local_now)
    actor_name: Mapped[str] = mapped_column(String(200), nullable=False, default="System")
    session_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class CurriculumProgressItem(UUIDPrimaryKeyMixin, Base):
    """One node of an enrollment's private copy of the curriculum tree.

    ``item_id`` is the template node id; it is unique within an enrollment
    and is what sessions reference through ``curriculum_item_id``.
    """

    __tablename__ = "curriculum_progress_items"
    __table_args__ = (
        UniqueConstraint("enrollment_id", "item_id", name="uq_progress_enrollment_item"),
    )

    enrollment_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("enrollments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_id: Mapped[str] = mapped_column(String(36), nullable=False)
    parent_item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CurriculumStatus.LOCKED.value)
    student_resources: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    teacher_resources: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    assignment_templates: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
