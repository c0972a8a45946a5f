# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum progress store.

This module provides the CurriculumProgressService class for:
- Copying a program's curriculum template into a new enrollment
- Loading an enrollment's tree or a program's template tree
- Applying a status change with cascade and writing changed rows back

All writes happen in the caller's transaction. A status change also bumps
the owning enrollment's version, so two cascades computed from the same
snapshot of the tree cannot both commit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from src.domains.curriculum.tree import CurriculumTree
from src.infrastructure.database.models import CurriculumProgressItem, Enrollment, ProgramCurriculumItem
from src.models.common import CurriculumStatus
from src.utils.datetime import local_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurriculumUpdate:
    """Outcome of a curriculum status change.

    Attributes:
        found: Whether the item exists in the enrollment's tree.
        progress_percent: Completed share after the change.
        is_complete: Whether every item is now Completed.
        changed_items: Number of rows whose status changed.
    """

    found: bool
    progress_percent: int
    is_complete: bool
    changed_items: int = 0


class CurriculumProgressService:
    """Per-enrollment curriculum arena.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the service.

        Args:
            db: Async database session the caller commits.
        """
        self.db = db

    async def _progress_rows(self, enrollment_id: str) -> list[CurriculumProgressItem]:
        result = await self.db.execute(
            select(CurriculumProgressItem).where(CurriculumProgressItem.enrollment_id == enrollment_id)
        )
        return list(result.scalars().all())

    async def _template_rows(self, program_id: str) -> list[ProgramCurriculumItem]:
        result = await self.db.execute(
            select(ProgramCurriculumItem).where(ProgramCurriculumItem.program_id == program_id)
        )
        return list(result.scalars().all())

    async def load_tree(self, enrollment_id: str) -> CurriculumTree:
        """Load an enrollment's curriculum tree."""
        return CurriculumTree.from_progress(await self._progress_rows(enrollment_id))

    async def load_program_tree(self, program_id: str) -> CurriculumTree:
        """Load a program's template tree."""
        return CurriculumTree.from_template(await self._template_rows(program_id))

    async def create_progress(self, enrollment_id: str, program_id: str) -> int:
        """Copy a program's curriculum into an enrollment.

        Every copied item starts Locked. JSON columns are copied by value so
        edits to one enrollment never reach the template or other students.

        Returns:
            Number of items copied.
        """
        templates = await self._template_rows(program_id)
        for item in templates:
            self.db.add(
                CurriculumProgressItem(
                    enrollment_id=enrollment_id,
                    item_id=item.id,
                    parent_item_id=item.parent_id,
                    position=item.position,
                    title=item.title,
                    item_type=item.item_type,
                    status=CurriculumStatus.LOCKED.value,
                    student_resources=[dict(r) for r in item.student_resources or []],
                    teacher_resources=[dict(r) for r in item.teacher_resources or []],
                    assignment_templates=[dict(t) for t in item.assignment_templates or []],
                )
            )
        await self.db.flush()

        logger.info(
            "Copied curriculum: enrollment=%s, program=%s, items=%d",
            enrollment_id,
            program_id,
            len(templates),
        )
        return len(templates)

    async def set_item_status(
        self,
        enrollment_id: str,
        item_id: str,
        status: CurriculumStatus,
    ) -> CurriculumUpdate:
        """Set an item's status, cascade it and persist changed rows.

        A missing item is a no-op reported through ``found``.
        """
        # Read the version before the rows it guards
        enrollment = await self.db.get(Enrollment, enrollment_id)
        rows = await self._progress_rows(enrollment_id)
        tree = CurriculumTree.from_progress(rows)

        if not tree.set_status(item_id, status):
            logger.debug("Curriculum item not in tree: enrollment=%s, item=%s", enrollment_id, item_id)
            return CurriculumUpdate(
                found=False,
                progress_percent=tree.progress_percent(),
                is_complete=tree.is_complete(),
            )

        statuses = tree.statuses()
        changed = 0
        for row in rows:
            new_status = statuses[row.item_id].value
            if row.status != new_status:
                row.status = new_status
                changed += 1

        if enrollment is not None:
            enrollment.updated_at = local_now()
            flag_modified(enrollment, "updated_at")
        await self.db.flush()

        update = CurriculumUpdate(
            found=True,
            progress_percent=tree.progress_percent(),
            is_complete=tree.is_complete(),
            changed_items=changed,
        )
        logger.info(
            "Curriculum updated: enrollment=%s, item=%s, status=%s, progress=%d%%",
            enrollment_id,
            item_id,
            status.value,
            update.progress_percent,
        )
        return update
