# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Collaborator interfaces used by the session lifecycle.

The lifecycle manager only talks to these narrow protocols. The database
implementations below work in the same session as the transition, so their
writes commit or roll back together with the ledger.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Announcement, Assignment, User
from src.models.common import AssignmentStatus
from src.utils.datetime import days_from_now

logger = logging.getLogger(__name__)


class AnnouncementSink(Protocol):
    """Sends templated announcements."""

    async def send_templated_announcement(
        self,
        target_user_id: str,
        template_id: str,
        variables: Mapping[str, Any],
        *,
        title: str | None = None,
    ) -> Announcement | None: ...


class ExperienceAwarder(Protocol):
    """Awards experience points to students."""

    async def add_experience_points(self, student_id: str, amount: int) -> None: ...


@dataclass(frozen=True)
class AssignmentTarget:
    """Who an assignment created from a template is for."""

    student_id: str
    enrollment_id: str
    program_id: str
    curriculum_item_id: str | None = None


class AssignmentCreator(Protocol):
    """Materializes assignments from curriculum templates."""

    async def create_assignment(
        self,
        template: Mapping[str, Any],
        due_in_days: int,
        target: AssignmentTarget,
    ) -> Assignment: ...


class DatabaseExperienceAwarder:
    """Adds experience points to the student's user record."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def add_experience_points(self, student_id: str, amount: int) -> None:
        student = await self.db.get(User, student_id)
        if student is None:
            logger.warning("Cannot award XP, student not found: student=%s", student_id)
            return
        student.experience_points = (student.experience_points or 0) + amount
        await self.db.flush()
        logger.debug("Awarded %d XP: student=%s, total=%d", amount, student_id, student.experience_points)


class DatabaseAssignmentCreator:
    """Stores assignments built from curriculum assignment templates."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create_assignment(
        self,
        template: Mapping[str, Any],
        due_in_days: int,
        target: AssignmentTarget,
    ) -> Assignment:
        """Create one Not Submitted assignment due ``due_in_days`` from today.

        Args:
            template: Assignment template with ``title`` and optional ``id``,
                ``url`` and ``instructions``.
            due_in_days: Days until the due date.
            target: Student, enrollment and curriculum item it belongs to.

        Returns:
            The stored assignment.
        """
        due: date = days_from_now(due_in_days)
        assignment = Assignment(
            title=template["title"],
            student_id=target.student_id,
            enrollment_id=target.enrollment_id,
            program_id=target.program_id,
            status=AssignmentStatus.NOT_SUBMITTED.value,
            due_date=due,
            url=template.get("url"),
            instructions=template.get("instructions"),
            curriculum_item_id=target.curriculum_item_id,
            template_id=template.get("id"),
        )
        self.db.add(assignment)
        await self.db.flush()
        return assignment
