# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cancellation request workflow.

This module provides the CancellationService class for:
- Creating a request against an upcoming scheduled session
- Listing requests and finding the pending one for a session
- Approving (cancels the session and refunds its credit) or denying

Requests move from pending to approved or denied and never back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    CancellationRequestNotFoundError,
    InvalidTransitionError,
    PreconditionFailedError,
    SessionNotFoundError,
    ValidationError,
)
from src.domains.ledger import SYSTEM_ACTOR
from src.domains.scheduling.lifecycle import CancellationOutcome, SessionLifecycleManager
from src.infrastructure.database.models import CancellationRequest, TutoringSession
from src.models.common import CancellationScope, CancellationStatus, SessionStatus
from src.utils.datetime import local_now

logger = logging.getLogger(__name__)


@dataclass
class CancellationResolution:
    """Outcome of approving or denying a request."""

    request: CancellationRequest
    outcome: CancellationOutcome | None = None
    notices: list[str] = field(default_factory=list)


class CancellationService:
    """Service for session cancellation requests.

    Attributes:
        db: Async database session.
        lifecycle: Lifecycle manager that performs approved cancellations.
    """

    def __init__(self, db: AsyncSession, lifecycle: SessionLifecycleManager) -> None:
        """Initialize cancellation service.

        Args:
            db: Async database session the caller commits.
            lifecycle: Lifecycle manager working in the same session.
        """
        self.db = db
        self.lifecycle = lifecycle

    async def get_request(self, request_id: str) -> CancellationRequest:
        """Get a request by ID.

        Raises:
            CancellationRequestNotFoundError: If not found.
        """
        request = await self.db.get(CancellationRequest, request_id)
        if request is None:
            raise CancellationRequestNotFoundError(f"Cancellation request {request_id} not found")
        return request

    async def find_pending(self, session_id: str) -> CancellationRequest | None:
        """Find the pending request for a session, if any."""
        result = await self.db.execute(
            select(CancellationRequest)
            .where(
                CancellationRequest.session_id == session_id,
                CancellationRequest.status == CancellationStatus.PENDING.value,
            )
            .order_by(CancellationRequest.requested_at)
        )
        return result.scalars().first()

    async def list_requests(
        self,
        status: CancellationStatus | None = None,
        student_id: str | None = None,
    ) -> list[CancellationRequest]:
        """List requests, newest first."""
        query = select(CancellationRequest)
        if status:
            query = query.where(CancellationRequest.status == status.value)
        if student_id:
            query = query.where(CancellationRequest.student_id == student_id)
        result = await self.db.execute(query.order_by(CancellationRequest.requested_at.desc()))
        return list(result.scalars().all())

    async def create_request(self, session_id: str, student_id: str) -> CancellationRequest:
        """Request cancellation of an upcoming session.

        Args:
            session_id: Session to cancel.
            student_id: Student the session belongs to.

        Returns:
            The pending request.

        Raises:
            SessionNotFoundError: If the session does not exist.
            ValidationError: If the session belongs to another student.
            PreconditionFailedError: If the session is not a future
                scheduled session.
        """
        session = await self.db.get(TutoringSession, session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        if session.student_id != student_id:
            raise ValidationError("Session does not belong to this student", {"session_id": session_id})
        if session.status != SessionStatus.SCHEDULED.value:
            raise PreconditionFailedError(
                f"Only scheduled sessions can be cancelled, session is {session.status}",
                {"session_id": session_id},
            )
        if session.start <= local_now():
            raise PreconditionFailedError("Past sessions cannot be cancelled", {"session_id": session_id})

        request = CancellationRequest(
            session_id=session_id,
            student_id=student_id,
            requested_at=local_now(),
            status=CancellationStatus.PENDING.value,
        )
        self.db.add(request)
        await self.db.flush()

        logger.info("Cancellation requested: request=%s, session=%s", request.id, session_id)
        return request

    def _resolve(self, request: CancellationRequest, status: CancellationStatus, actor: str) -> None:
        if request.status != CancellationStatus.PENDING.value:
            raise InvalidTransitionError(
                f"Cancellation request is already {request.status}",
                {"request_id": request.id},
            )
        request.status = status.value
        request.resolved_at = local_now()
        request.resolved_by = actor

    async def approve(self, request_id: str, actor: str = SYSTEM_ACTOR) -> CancellationResolution:
        """Approve a request and cancel its session.

        A session that is missing or no longer scheduled does not block the
        approval; a notice is returned instead.

        Raises:
            CancellationRequestNotFoundError: If the request does not exist.
            InvalidTransitionError: If the request is not pending.
        """
        request = await self.get_request(request_id)
        self._resolve(request, CancellationStatus.APPROVED, actor)
        resolution = CancellationResolution(request=request)

        try:
            resolution.outcome = await self.lifecycle.cancel(request.session_id, CancellationScope.SINGLE, actor)
            resolution.notices.extend(resolution.outcome.notices)
        except SessionNotFoundError:
            logger.warning("Approved request for missing session: request=%s", request_id)
            resolution.notices.append("Cancellation approved, but session could not be found to cancel.")
        except InvalidTransitionError:
            logger.warning("Approved request for session that is no longer scheduled: request=%s", request_id)
            resolution.notices.append("Cancellation approved, but the session was no longer scheduled.")

        await self.db.flush()
        logger.info("Cancellation approved: request=%s, by=%s", request_id, actor)
        return resolution

    async def deny(self, request_id: str, actor: str = SYSTEM_ACTOR) -> CancellationResolution:
        """Deny a request. The session is left as it is.

        Raises:
            CancellationRequestNotFoundError: If the request does not exist.
            InvalidTransitionError: If the request is not pending.
        """
        request = await self.get_request(request_id)
        self._resolve(request, CancellationStatus.DENIED, actor)
        await self.db.flush()
        logger.info("Cancellation denied: request=%s, by=%s", request_id, actor)
        return CancellationResolution(request=request)
