# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Program and curriculum template models.

A program's curriculum is stored as an adjacency list: each item points at
its parent and carries its position among siblings. Enrollments never read
these rows for progress; they get their own copy.
"""

from typing import Any

from sqlalchemy import JSON, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Program(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A tutoring program students enroll in."""

    __tablename__ = "programs"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")


class ProgramCurriculumItem(UUIDPrimaryKeyMixin, Base):
    """Template node of a program's curriculum tree.

    ``assignment_templates`` holds dicts with ``id``, ``title``, ``url`` and
    optional ``instructions``.
    """

    __tablename__ = "program_curriculum_items"

    program_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("programs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    student_resources: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    teacher_resources: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    assignment_templates: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
