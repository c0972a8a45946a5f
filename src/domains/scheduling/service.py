# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduling service.

This module provides the SchedulingService class for:
- Listing sessions for calendars
- Booking one-off sessions and weekly series
- Changing session status and cancelling sessions
- Checking whether a session's meeting link is open

It turns API requests into generator and lifecycle calls and their results
into response models.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import SchedulingSettings
from src.core.exceptions import PreconditionFailedError
from src.domains.ledger import SYSTEM_ACTOR
from src.domains.scheduling.generator import (
    SKIP_STUDENT_CONFLICT,
    SKIP_TEACHER_CONFLICT,
    RecurringBatchResult,
    RecurringSessionGenerator,
    SessionTemplate,
)
from src.domains.scheduling.lifecycle import (
    CancellationOutcome,
    LifecyclePolicy,
    SessionLifecycleManager,
    TransitionResult,
)
from src.infrastructure.database.models import Program, ProgramCurriculumItem, TutoringSession, User
from src.models.common import CancellationScope, SessionStatus, SessionType
from src.models.scheduling import (
    CancellationOutcomeResponse,
    JoinableResponse,
    RecurringBatchResponse,
    RecurringSessionRequest,
    SessionCreateRequest,
    SessionResponse,
    SkippedOccurrenceResponse,
    TransitionResponse,
)

logger = logging.getLogger(__name__)

_SKIP_MESSAGES = {
    SKIP_TEACHER_CONFLICT: "The teacher already has a session at this time",
    SKIP_STUDENT_CONFLICT: "The student already has a session at this time",
}


def to_transition_response(result: TransitionResult) -> TransitionResponse:
    """Convert a lifecycle result into its API response."""
    entry = result.credit_entry
    return TransitionResponse(
        session=SessionResponse.model_validate(result.session),
        previous_status=result.previous_status,
        changed=result.changed,
        credits_deducted=-entry.transaction.change if entry else 0,
        credits_refunded=result.credits_refunded,
        credits_remaining=entry.balance_after if entry else None,
        low_credit_alert_sent=result.low_credit_alert_sent,
        assignments_created=[a.id for a in result.assignments],
        enrollment_completed=result.enrollment_completed,
        xp_awarded=result.xp_awarded,
        notices=result.notices,
    )


def to_cancellation_response(outcome: CancellationOutcome) -> CancellationOutcomeResponse:
    """Convert a cancellation outcome into its API response."""
    return CancellationOutcomeResponse(
        cancelled_count=outcome.cancelled_count,
        credits_refunded=outcome.credits_refunded,
        cancelled_session_ids=[s.id for s in outcome.cancelled],
        notices=outcome.notices,
    )


class SchedulingService:
    """Service for booking and managing tutoring sessions.

    Attributes:
        db: Async database session.
        settings: Scheduling rules.
    """

    def __init__(self, db: AsyncSession, settings: SchedulingSettings) -> None:
        """Initialize scheduling service.

        Args:
            db: Async database session the caller commits.
            settings: Scheduling rules.
        """
        self.db = db
        self.settings = settings
        self.generator = RecurringSessionGenerator(db, max_occurrences=settings.max_recurring_occurrences)
        self.lifecycle = SessionLifecycleManager(db, LifecyclePolicy.from_settings(settings))

    async def list_sessions(
        self,
        teacher_id: str | None = None,
        student_id: str | None = None,
        program_id: str | None = None,
        status: SessionStatus | None = None,
        start_from: datetime | None = None,
        start_to: datetime | None = None,
    ) -> list[SessionResponse]:
        """List sessions ordered by start time.

        Args:
            teacher_id: Filter by teacher.
            student_id: Filter by student.
            program_id: Filter by program.
            status: Filter by status.
            start_from: Sessions starting at or after this time.
            start_to: Sessions starting before this time.

        Returns:
            Matching sessions.
        """
        query = select(TutoringSession)
        if teacher_id:
            query = query.where(TutoringSession.teacher_id == teacher_id)
        if student_id:
            query = query.where(TutoringSession.student_id == student_id)
        if program_id:
            query = query.where(TutoringSession.program_id == program_id)
        if status:
            query = query.where(TutoringSession.status == status.value)
        if start_from:
            query = query.where(TutoringSession.start >= start_from)
        if start_to:
            query = query.where(TutoringSession.start < start_to)

        result = await self.db.execute(query.order_by(TutoringSession.start))
        return [SessionResponse.model_validate(s) for s in result.scalars().all()]

    async def build_title(self, request: SessionCreateRequest) -> str:
        """Build the display title of a session.

        Demo sessions are titled after the prospect and curriculum sessions
        after the program, item and student. Other types keep the given
        title.
        """
        program = await self.db.get(Program, request.program_id)
        program_title = program.title if program else "Session"

        if request.session_type == SessionType.DEMO:
            return f"Demo: {program_title} - {request.prospect_name or 'Prospect'}"

        student = await self.db.get(User, request.student_id) if request.student_id else None
        student_name = student.full_name if student else "Student"

        if request.session_type == SessionType.CURRICULUM:
            item = (
                await self.db.get(ProgramCurriculumItem, request.curriculum_item_id)
                if request.curriculum_item_id
                else None
            )
            item_part = f": {item.title}" if item else ""
            return f"{program_title}{item_part} - {student_name}"

        return request.title or f"{request.session_type.value} - {student_name}"

    async def _template(self, request: SessionCreateRequest) -> SessionTemplate:
        return SessionTemplate(
            title=await self.build_title(request),
            start=request.start,
            end=request.end,
            teacher_id=request.teacher_id,
            program_id=request.program_id,
            session_type=request.session_type,
            student_id=request.student_id,
            curriculum_item_id=request.curriculum_item_id,
            session_url=request.session_url,
            parent_summary=request.parent_summary,
            prospect_name=request.prospect_name,
        )

    async def create_session(self, request: SessionCreateRequest) -> SessionResponse:
        """Book a single session.

        One-off bookings are not checked against the credit balance, so a
        make-up session can be booked for a student with no credits left.
        Demo sessions and parent-teacher meetings may be booked outside the
        teacher's weekly slots but not on a day off.

        Raises:
            ValidationError: If the request is malformed.
            PreconditionFailedError: If the teacher is unavailable or either
                party already has a session at that time.
        """
        result = await self.generator.generate(
            await self._template(request),
            1,
            require_credit_check=False,
            recurring=False,
            slot_bound=request.session_type.is_credit_bearing,
        )
        if not result.created:
            reason = result.skipped[0].reason
            raise PreconditionFailedError(
                _SKIP_MESSAGES.get(reason, "The teacher is not available at this time"),
                {"reason": reason, "start": request.start.isoformat()},
            )
        return SessionResponse.model_validate(result.created[0])

    async def create_recurring_sessions(self, request: RecurringSessionRequest) -> RecurringBatchResponse:
        """Book a weekly series.

        Occurrences that clash are skipped and reported; the rest are
        created.

        Raises:
            ValidationError: If the request is malformed.
            InsufficientCreditsError: If the batch cannot be covered.
        """
        result: RecurringBatchResult = await self.generator.generate(
            await self._template(request),
            request.count,
            require_credit_check=not request.editing_existing,
        )
        return RecurringBatchResponse(
            recurring_id=result.recurring_id,
            created=[SessionResponse.model_validate(s) for s in result.created],
            skipped=[
                SkippedOccurrenceResponse(occurrence_date=skip.date, start=skip.start, reason=skip.reason)
                for skip in result.skipped
            ],
            skipped_dates=result.skipped_dates,
            message=result.summary(),
        )

    async def set_status(
        self,
        session_id: str,
        status: SessionStatus,
        actor: str = SYSTEM_ACTOR,
    ) -> TransitionResponse:
        """Change a session's status and apply its side effects."""
        return to_transition_response(await self.lifecycle.set_status(session_id, status, actor))

    async def cancel(
        self,
        session_id: str,
        scope: CancellationScope,
        actor: str = SYSTEM_ACTOR,
    ) -> CancellationOutcomeResponse:
        """Cancel a session, or it and the rest of its series."""
        return to_cancellation_response(await self.lifecycle.cancel(session_id, scope, actor))

    async def get_joinable(self, session_id: str, now: datetime | None = None) -> JoinableResponse:
        """Check whether a session's meeting link is open."""
        session = await self.lifecycle.get_session(session_id)
        return JoinableResponse(
            session_id=session.id,
            joinable=self.lifecycle.is_joinable(session, now),
            session_url=session.session_url,
        )
