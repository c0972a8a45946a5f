# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session lifecycle state machine.

This module provides the SessionLifecycleManager class, the only place a
session changes status after it is created.

Transitions:
    Scheduled -> Completed | Absent | Cancelled

Completed, Absent and Cancelled are terminal. Re-applying a session's
current status is a no-op, so a double click never deducts twice.

Side effects of Scheduled -> Completed | Absent, in order:
1. Deduct one credit from the student's active enrollment, unless the
   session type is free or the balance is already zero.
2. Send a low-credit alert to the parent when the deduction crosses the
   threshold.
3. On Completed only: assign the next curriculum item's homework, mark the
   session's curriculum item Completed (completing the enrollment when the
   whole tree is done) and award experience points.

Side effects of cancellation:
    Each cancelled credit-bearing session refunds one credit.

Every side effect runs in the caller's transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import SchedulingSettings
from src.core.exceptions import InvalidTransitionError, SessionNotFoundError
from src.domains.curriculum import CurriculumProgressService
from src.domains.ledger import SYSTEM_ACTOR, CreditLedger, LedgerEntry
from src.domains.scheduling.collaborators import (
    AnnouncementSink,
    AssignmentCreator,
    AssignmentTarget,
    DatabaseAssignmentCreator,
    DatabaseExperienceAwarder,
    ExperienceAwarder,
)
from src.infrastructure.database.models import Assignment, Enrollment, Program, TutoringSession, User
from src.infrastructure.notifications import AnnouncementService
from src.models.common import (
    CancellationScope,
    CurriculumStatus,
    EnrollmentStatus,
    SessionStatus,
    is_credit_bearing,
)
from src.utils.datetime import format_date, local_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecyclePolicy:
    """Tunable rules for lifecycle side effects.

    Attributes:
        low_credit_alerts_enabled: Whether to alert parents at all.
        low_credit_threshold: Alert when a deduction brings the balance to
            this value or below, from above it.
        low_credit_template_id: Message template for the alert.
        xp_per_completed_session: Experience points per completed session.
        assignment_due_days: Days until next-step assignments are due.
        join_buffer_minutes_before: Minutes before start a session opens.
        join_buffer_minutes_after: Minutes after end a session stays open.
        company_name: Used in message templates.
    """

    low_credit_alerts_enabled: bool = True
    low_credit_threshold: int = 5
    low_credit_template_id: str = "low-credit-alert"
    xp_per_completed_session: int = 50
    assignment_due_days: int = 7
    join_buffer_minutes_before: int = 15
    join_buffer_minutes_after: int = 10
    company_name: str = "TutorOps Academy"

    @classmethod
    def from_settings(cls, settings: SchedulingSettings) -> "LifecyclePolicy":
        """Build the policy from scheduling settings."""
        return cls(
            low_credit_alerts_enabled=settings.low_credit_alerts_enabled,
            low_credit_threshold=settings.low_credit_threshold,
            low_credit_template_id=settings.low_credit_template_id,
            xp_per_completed_session=settings.xp_per_completed_session,
            assignment_due_days=settings.assignment_due_days,
            join_buffer_minutes_before=settings.join_buffer_minutes_before,
            join_buffer_minutes_after=settings.join_buffer_minutes_after,
            company_name=settings.company_name,
        )


@dataclass
class TransitionResult:
    """Outcome of a status change.

    Attributes:
        session: The session after the change.
        previous_status: Status before the call.
        changed: False when the call was a no-op.
        credit_entry: Ledger entry for the deduction, if any.
        credits_refunded: Credits returned by a cancellation.
        low_credit_alert_sent: Whether a parent alert was sent.
        assignments: Assignments created for the next curriculum item.
        enrollment_completed: Whether this call completed the enrollment.
        xp_awarded: Experience points awarded.
        notices: Messages for the person who made the change.
    """

    session: TutoringSession
    previous_status: SessionStatus
    changed: bool = True
    credit_entry: LedgerEntry | None = None
    credits_refunded: int = 0
    low_credit_alert_sent: bool = False
    assignments: list[Assignment] = field(default_factory=list)
    enrollment_completed: bool = False
    xp_awarded: int = 0
    notices: list[str] = field(default_factory=list)


@dataclass
class CancellationOutcome:
    """Outcome of cancelling one session or the rest of a series."""

    cancelled: list[TutoringSession] = field(default_factory=list)
    credits_refunded: int = 0
    notices: list[str] = field(default_factory=list)

    @property
    def cancelled_count(self) -> int:
        return len(self.cancelled)


class SessionLifecycleManager:
    """Applies session transitions and their side effects.

    Attributes:
        db: Async database session.
        policy: Lifecycle rules.
    """

    def __init__(
        self,
        db: AsyncSession,
        policy: LifecyclePolicy,
        announcements: AnnouncementSink | None = None,
        experience: ExperienceAwarder | None = None,
        assignments: AssignmentCreator | None = None,
    ) -> None:
        """Initialize the manager.

        Collaborators default to database-backed implementations that write
        in the same session.

        Args:
            db: Async database session the caller commits.
            policy: Lifecycle rules.
            announcements: Announcement sink for low-credit alerts.
            experience: Experience point awarder.
            assignments: Assignment creator.
        """
        self.db = db
        self.policy = policy
        self.announcements = announcements or AnnouncementService(db)
        self.experience = experience or DatabaseExperienceAwarder(db)
        self.assignments = assignments or DatabaseAssignmentCreator(db)
        self.ledger = CreditLedger(db)
        self.progress = CurriculumProgressService(db)

    async def get_session(self, session_id: str) -> TutoringSession:
        """Get a session by ID.

        Raises:
            SessionNotFoundError: If not found.
        """
        session = await self.db.get(TutoringSession, session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    async def set_status(
        self,
        session_id: str,
        status: SessionStatus,
        actor: str = SYSTEM_ACTOR,
    ) -> TransitionResult:
        """Move a session to a new status.

        Args:
            session_id: Session identifier.
            status: Target status.
            actor: Name recorded on ledger entries.

        Returns:
            TransitionResult describing every side effect.

        Raises:
            SessionNotFoundError: If the session does not exist.
            InvalidTransitionError: If the session is no longer Scheduled.
        """
        session = await self.get_session(session_id)
        previous = SessionStatus(session.status)

        if previous == status:
            logger.debug("Session already %s, nothing to do: session=%s", status.value, session_id)
            return TransitionResult(session=session, previous_status=previous, changed=False)

        if previous.is_terminal:
            raise InvalidTransitionError(
                f"Session is {previous.value} and cannot be changed to {status.value}",
                {"session_id": session_id, "status": previous.value},
            )

        if status == SessionStatus.CANCELLED:
            outcome = await self._cancel_sessions([session], actor)
            return TransitionResult(
                session=session,
                previous_status=previous,
                credits_refunded=outcome.credits_refunded,
                notices=outcome.notices,
            )

        session.status = status.value
        result = TransitionResult(session=session, previous_status=previous)

        enrollment = await self.ledger.find_enrollment(session.student_id, session.program_id)

        if enrollment is not None and is_credit_bearing(session.session_type):
            await self._deduct_credit(session, enrollment, status, actor, result)

        if status == SessionStatus.COMPLETED:
            await self._complete_session(session, enrollment, result)

        await self.db.flush()

        logger.info(
            "Session transition: session=%s, %s->%s, deducted=%s, assignments=%d, enrollment_completed=%s",
            session_id,
            previous.value,
            status.value,
            result.credit_entry is not None,
            len(result.assignments),
            result.enrollment_completed,
        )
        return result

    async def _deduct_credit(
        self,
        session: TutoringSession,
        enrollment: Enrollment,
        status: SessionStatus,
        actor: str,
        result: TransitionResult,
    ) -> None:
        entry = await self.ledger.deduct_for_session(enrollment, status.value, session.id, actor=actor)
        if entry is None:
            result.notices.append("Student has no credits remaining. Credit not deducted.")
            return

        result.credit_entry = entry
        result.notices.append(f"1 credit deducted for {status.value} session.")

        if self.policy.low_credit_alerts_enabled and entry.crossed_threshold(self.policy.low_credit_threshold):
            recipient = await self._send_low_credit_alert(session, entry.balance_after)
            if recipient is not None:
                result.low_credit_alert_sent = True
                result.notices.append(f"Low credit alert sent to {recipient}.")

    async def _send_low_credit_alert(self, session: TutoringSession, balance: int) -> str | None:
        student = await self.db.get(User, session.student_id) if session.student_id else None
        if student is None or not student.parent_id:
            logger.info("No parent linked, low credit alert skipped: student=%s", session.student_id)
            return None

        parent = await self.db.get(User, student.parent_id)
        if parent is None:
            logger.warning("Linked parent not found: student=%s, parent=%s", student.id, student.parent_id)
            return None

        program = await self.db.get(Program, session.program_id)
        if program is None:
            logger.warning("Program not found, low credit alert skipped: program=%s", session.program_id)
            return None

        variables = {
            "Parent Name": parent.full_name,
            "Student Name": student.full_name,
            "Program Name": program.title,
            "Credits Remaining": balance,
            "Company Name": self.policy.company_name,
        }
        announcement = await self.announcements.send_templated_announcement(
            parent.id,
            self.policy.low_credit_template_id,
            variables,
            title=f"Low Credit Alert for {student.first_name}",
        )
        return parent.full_name if announcement is not None else None

    async def _complete_session(
        self,
        session: TutoringSession,
        enrollment: Enrollment | None,
        result: TransitionResult,
    ) -> None:
        if session.curriculum_item_id and enrollment is not None:
            await self._assign_next_item(session, enrollment, result)

            update = await self.progress.set_item_status(
                enrollment.id,
                session.curriculum_item_id,
                CurriculumStatus.COMPLETED,
            )
            if update.is_complete and enrollment.status == EnrollmentStatus.ACTIVE.value:
                enrollment.status = EnrollmentStatus.COMPLETED.value
                result.enrollment_completed = True
                result.notices.append("Student has completed the program! Enrollment status updated.")
                logger.info("Enrollment completed: enrollment=%s", enrollment.id)

        xp = self.policy.xp_per_completed_session
        if session.student_id and xp > 0:
            await self.experience.add_experience_points(session.student_id, xp)
            result.xp_awarded = xp
            result.notices.append(f"Awarded {xp}XP to student for completing a session!")

    async def _assign_next_item(
        self,
        session: TutoringSession,
        enrollment: Enrollment,
        result: TransitionResult,
    ) -> None:
        tree = await self.progress.load_program_tree(session.program_id)
        next_item = tree.next_item(session.curriculum_item_id)
        if next_item is None:
            return

        target = AssignmentTarget(
            student_id=enrollment.student_id,
            enrollment_id=enrollment.id,
            program_id=session.program_id,
            curriculum_item_id=next_item.id,
        )
        for template in next_item.assignment_templates:
            assignment = await self.assignments.create_assignment(
                template,
                self.policy.assignment_due_days,
                target,
            )
            result.assignments.append(assignment)
            result.notices.append(f'Assigned "{assignment.title}" to student.')

    async def cancel(
        self,
        session_id: str,
        scope: CancellationScope = CancellationScope.SINGLE,
        actor: str = SYSTEM_ACTOR,
    ) -> CancellationOutcome:
        """Cancel a session, or it and the rest of its series.

        Series scope covers every Scheduled session sharing the target's
        recurring id that starts at or after the target. Earlier occurrences
        are untouched.

        Args:
            session_id: Targeted session.
            scope: Single session or the rest of the series.
            actor: Name recorded on refund entries.

        Returns:
            CancellationOutcome with cancelled sessions and refunds.

        Raises:
            SessionNotFoundError: If the session does not exist.
            InvalidTransitionError: If the target is not Scheduled.
        """
        target = await self.get_session(session_id)
        if target.status != SessionStatus.SCHEDULED.value:
            raise InvalidTransitionError(
                f"Only scheduled sessions can be cancelled, session is {target.status}",
                {"session_id": session_id, "status": target.status},
            )

        sessions = [target]
        if scope == CancellationScope.SERIES and target.recurring_id:
            query = (
                select(TutoringSession)
                .where(
                    TutoringSession.recurring_id == target.recurring_id,
                    TutoringSession.start >= target.start,
                    TutoringSession.status == SessionStatus.SCHEDULED.value,
                )
                .order_by(TutoringSession.start)
            )
            sessions = list((await self.db.execute(query)).scalars().all())

        outcome = await self._cancel_sessions(sessions, actor)
        logger.info(
            "Cancelled sessions: target=%s, scope=%s, cancelled=%d, refunded=%d",
            session_id,
            scope.value,
            outcome.cancelled_count,
            outcome.credits_refunded,
        )
        return outcome

    async def _cancel_sessions(self, sessions: list[TutoringSession], actor: str) -> CancellationOutcome:
        outcome = CancellationOutcome()
        for session in sessions:
            session.status = SessionStatus.CANCELLED.value
            outcome.cancelled.append(session)

            if not is_credit_bearing(session.session_type):
                continue
            enrollment = await self.ledger.find_enrollment(
                session.student_id,
                session.program_id,
                active_only=False,
            )
            if enrollment is None:
                continue
            await self.ledger.refund_for_session(enrollment, session.id, format_date(session.start), actor=actor)
            outcome.credits_refunded += 1

        await self.db.flush()

        if outcome.credits_refunded:
            outcome.notices.append(f"{outcome.credits_refunded} credit(s) refunded.")
        return outcome

    def is_joinable(self, session: TutoringSession, now: datetime | None = None) -> bool:
        """Check whether a session's meeting link is open.

        The link opens a few minutes before start and closes a few minutes
        after end.
        """
        if session.status != SessionStatus.SCHEDULED.value or not session.session_url:
            return False
        now = now or local_now()
        opens = session.start - timedelta(minutes=self.policy.join_buffer_minutes_before)
        closes = session.end + timedelta(minutes=self.policy.join_buffer_minutes_after)
        return opens <= now <= closes
