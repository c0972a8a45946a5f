# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recurring session generation.

This module provides the RecurringSessionGenerator class for:
- Planning weekly occurrences from a session template
- Checking each occurrence against teacher availability and existing sessions
- Creating the accepted occurrences as one recurring batch

The credit check is all-or-nothing and runs before anything is written.
Availability and conflict checks are per occurrence: a rejected occurrence
is reported in the skip list and the rest of the batch is still created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import InsufficientCreditsError, ValidationError
from src.domains.availability import AvailabilityIndex
from src.domains.ledger import CreditLedger
from src.infrastructure.database.models import TutoringSession, new_id
from src.models.common import SessionStatus, SessionType, is_credit_bearing
from src.utils.datetime import add_weeks, format_date, overlaps

logger = logging.getLogger(__name__)

SKIP_UNAVAILABLE = "teacher_unavailable"
SKIP_TEACHER_CONFLICT = "teacher_conflict"
SKIP_STUDENT_CONFLICT = "student_conflict"


@dataclass(frozen=True)
class SessionTemplate:
    """Everything needed to create a session, before it exists.

    ``start`` and ``end`` define both the first occurrence and the duration
    of every later one.
    """

    title: str
    start: datetime
    end: datetime
    teacher_id: str
    program_id: str
    session_type: SessionType = SessionType.CURRICULUM
    student_id: str | None = None
    curriculum_item_id: str | None = None
    session_url: str | None = None
    parent_summary: str | None = None
    prospect_name: str | None = None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass(frozen=True)
class Occurrence:
    """One planned slot of a recurring batch."""

    index: int
    start: datetime
    end: datetime


@dataclass(frozen=True)
class SkippedOccurrence:
    """An occurrence that was not created, and why."""

    index: int
    start: datetime
    reason: str

    @property
    def date(self) -> date:
        return self.start.date()


@dataclass
class RecurringBatchResult:
    """Outcome of a batch generation.

    Attributes:
        recurring_id: Identifier shared by every created session, or None
            for a one-off session.
        created: Sessions created, in occurrence order.
        skipped: Occurrences that were rejected.
    """

    recurring_id: str | None
    created: list[TutoringSession] = field(default_factory=list)
    skipped: list[SkippedOccurrence] = field(default_factory=list)

    @property
    def skipped_dates(self) -> list[date]:
        """Skipped occurrence dates, ordered and without duplicates."""
        return list(dict.fromkeys(skip.date for skip in self.skipped))

    def summary(self) -> str:
        """Human-readable summary for the caller."""
        message = f"Successfully created {len(self.created)} session(s)."
        if self.skipped:
            dates = ", ".join(format_date(d) for d in self.skipped_dates)
            message += f" Skipped {len(self.skipped_dates)} date(s) due to conflicts or unavailability: {dates}"
        return message


def plan_occurrences(template: SessionTemplate, count: int) -> list[Occurrence]:
    """Plan ``count`` weekly occurrences starting at the template start."""
    return [
        Occurrence(index=i, start=add_weeks(template.start, i), end=add_weeks(template.start, i) + template.duration)
        for i in range(count)
    ]


def find_conflict(
    occurrence: Occurrence,
    template: SessionTemplate,
    existing: list[TutoringSession],
) -> str | None:
    """Find why an occurrence clashes with existing sessions.

    Args:
        occurrence: Planned occurrence.
        template: Template the occurrence comes from.
        existing: Non-cancelled sessions that may clash.

    Returns:
        A skip reason, or None if the occurrence is free.
    """
    check_student = template.session_type != SessionType.DEMO and template.student_id is not None

    for session in existing:
        if not overlaps(occurrence.start, occurrence.end, session.start, session.end):
            continue
        if session.teacher_id == template.teacher_id:
            return SKIP_TEACHER_CONFLICT
        if check_student and session.student_id == template.student_id:
            return SKIP_STUDENT_CONFLICT
    return None


class RecurringSessionGenerator:
    """Creates weekly session batches.

    Attributes:
        db: Async database session.
        max_occurrences: Largest batch accepted.
    """

    def __init__(self, db: AsyncSession, max_occurrences: int = 52) -> None:
        """Initialize the generator.

        Args:
            db: Async database session the caller commits.
            max_occurrences: Largest batch accepted.
        """
        self.db = db
        self.max_occurrences = max_occurrences
        self._ledger = CreditLedger(db)

    def validate(self, template: SessionTemplate, count: int) -> None:
        """Reject malformed requests before any read or write.

        Raises:
            ValidationError: If the count or the time range is invalid.
        """
        if count < 1:
            raise ValidationError("Occurrence count must be at least 1", {"count": count})
        if count > self.max_occurrences:
            raise ValidationError(
                f"Occurrence count cannot exceed {self.max_occurrences}",
                {"count": count, "max": self.max_occurrences},
            )
        if template.end <= template.start:
            raise ValidationError("Session end must be after its start")
        if template.session_type == SessionType.CURRICULUM and not template.student_id:
            raise ValidationError("Curriculum sessions require a student")

    async def check_credits(self, template: SessionTemplate, count: int) -> None:
        """Require enough credits for the whole batch.

        Only applies to credit-bearing sessions whose student has an active
        enrollment in the program.

        Raises:
            InsufficientCreditsError: If the balance is below ``count``.
        """
        if not is_credit_bearing(template.session_type):
            return

        enrollment = await self._ledger.find_enrollment(template.student_id, template.program_id)
        if enrollment is not None and enrollment.credits_remaining < count:
            raise InsufficientCreditsError(
                f"Insufficient credits. Student has {enrollment.credits_remaining}, "
                f"but {count} session(s) were requested.",
                available=enrollment.credits_remaining,
                required=count,
            )

    async def _load_existing(
        self,
        template: SessionTemplate,
        window_start: datetime,
        window_end: datetime,
    ) -> list[TutoringSession]:
        parties = [TutoringSession.teacher_id == template.teacher_id]
        if template.student_id:
            parties.append(TutoringSession.student_id == template.student_id)

        result = await self.db.execute(
            select(TutoringSession).where(
                TutoringSession.status != SessionStatus.CANCELLED.value,
                TutoringSession.start < window_end,
                TutoringSession.end > window_start,
                or_(*parties),
            )
        )
        return list(result.scalars().all())

    async def generate(
        self,
        template: SessionTemplate,
        count: int,
        require_credit_check: bool = True,
        recurring: bool = True,
        slot_bound: bool = True,
    ) -> RecurringBatchResult:
        """Generate up to ``count`` weekly sessions.

        Args:
            template: Session template; its start is the first occurrence.
            count: Number of weekly occurrences.
            require_credit_check: False when editing an existing session.
            recurring: Whether the sessions share a recurring id.
            slot_bound: Whether occurrences must fall inside a weekly slot.
                When False only the teacher's days off are enforced.

        Returns:
            RecurringBatchResult with created sessions and skipped dates.

        Raises:
            ValidationError: If the request is malformed.
            InsufficientCreditsError: If the batch cannot be covered.
        """
        self.validate(template, count)
        if require_credit_check:
            await self.check_credits(template, count)

        occurrences = plan_occurrences(template, count)
        availability = await AvailabilityIndex.load(self.db, [template.teacher_id])
        existing = await self._load_existing(template, occurrences[0].start, occurrences[-1].end)

        result = RecurringBatchResult(recurring_id=new_id() if recurring else None)

        for occurrence in occurrences:
            if slot_bound:
                available = availability.is_available(template.teacher_id, occurrence.start)
            else:
                available = not availability.is_blocked(template.teacher_id, occurrence.start.date())

            if not available:
                reason = SKIP_UNAVAILABLE
            else:
                reason = find_conflict(occurrence, template, existing)

            if reason is not None:
                result.skipped.append(SkippedOccurrence(occurrence.index, occurrence.start, reason))
                continue

            session = TutoringSession(
                id=new_id(),
                title=template.title,
                start=occurrence.start,
                end=occurrence.end,
                student_id=template.student_id,
                teacher_id=template.teacher_id,
                program_id=template.program_id,
                curriculum_item_id=template.curriculum_item_id,
                status=SessionStatus.SCHEDULED.value,
                session_type=template.session_type.value,
                recurring_id=result.recurring_id,
                session_url=template.session_url,
                parent_summary=template.parent_summary,
                prospect_name=template.prospect_name,
            )
            self.db.add(session)
            existing.append(session)
            result.created.append(session)

        await self.db.flush()

        logger.info(
            "Generated sessions: teacher=%s, requested=%d, created=%d, skipped=%d, recurring_id=%s",
            template.teacher_id,
            count,
            len(result.created),
            len(result.skipped),
            result.recurring_id,
        )
        return result
