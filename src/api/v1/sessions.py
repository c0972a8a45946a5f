# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session scheduling API endpoints.

This module provides endpoints for the schedule:
- GET / - List sessions
- POST / - Book a single session
- POST /recurring - Book a weekly series
- POST /{session_id}/status - Complete, mark absent or cancel a session
- POST /{session_id}/cancel - Cancel a session or the rest of its series
- GET /{session_id}/joinable - Check whether the meeting link is open

Every mutating call runs as one database transaction.
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.dependencies import Actor, Runner, Scheduling, to_http_exception
from src.core.exceptions import SchedulingError
from src.domains.scheduling import SchedulingService
from src.models.common import SessionStatus
from src.models.scheduling import (
    CancellationOutcomeResponse,
    CancelRequest,
    JoinableResponse,
    RecurringBatchResponse,
    RecurringSessionRequest,
    SessionCreateRequest,
    SessionResponse,
    StatusChangeRequest,
    TransitionResponse,
)
from src.utils.datetime import to_naive

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=list[SessionResponse],
    summary="List sessions",
    description="List sessions ordered by start time, with optional filters.",
)
async def list_sessions(
    runner: Runner,
    settings: Scheduling,
    teacher_id: Annotated[str | None, Query(description="Filter by teacher")] = None,
    student_id: Annotated[str | None, Query(description="Filter by student")] = None,
    program_id: Annotated[str | None, Query(description="Filter by program")] = None,
    session_status: Annotated[SessionStatus | None, Query(alias="status", description="Filter by status")] = None,
    start_from: Annotated[datetime | None, Query(description="Sessions starting at or after")] = None,
    start_to: Annotated[datetime | None, Query(description="Sessions starting before")] = None,
) -> list[SessionResponse]:
    """List sessions for a calendar view."""
    try:
        return await runner.run(
            lambda db: SchedulingService(db, settings).list_sessions(
                teacher_id=teacher_id,
                student_id=student_id,
                program_id=program_id,
                status=session_status,
                start_from=to_naive(start_from) if start_from else None,
                start_to=to_naive(start_to) if start_to else None,
            )
        )
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book session",
    description="Book a single session after availability, conflict and credit checks.",
)
async def create_session(
    data: SessionCreateRequest,
    runner: Runner,
    settings: Scheduling,
) -> SessionResponse:
    """Book a single session.

    Args:
        data: Session details.
        runner: Transaction runner.
        settings: Scheduling rules.

    Returns:
        The created session.

    Raises:
        HTTPException: 422 on invalid input, 400 when the slot is taken,
            the teacher is unavailable or credits are insufficient.
    """
    logger.info("Booking session: teacher=%s, start=%s", data.teacher_id, data.start)
    try:
        return await runner.run(lambda db: SchedulingService(db, settings).create_session(data))
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post(
    "/recurring",
    response_model=RecurringBatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book weekly series",
    description=(
        "Book up to `count` weekly sessions. Occurrences that clash are skipped "
        "and reported; the batch is rejected outright if credits do not cover it."
    ),
)
async def create_recurring_sessions(
    data: RecurringSessionRequest,
    runner: Runner,
    settings: Scheduling,
) -> RecurringBatchResponse:
    """Book a weekly series of sessions.

    Args:
        data: Session template and occurrence count.
        runner: Transaction runner.
        settings: Scheduling rules.

    Returns:
        Created sessions and skipped dates.

    Raises:
        HTTPException: 422 on invalid input, 400 on insufficient credits.
    """
    logger.info(
        "Booking series: teacher=%s, start=%s, count=%d",
        data.teacher_id,
        data.start,
        data.count,
    )
    try:
        return await runner.run(lambda db: SchedulingService(db, settings).create_recurring_sessions(data))
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post(
    "/{session_id}/status",
    response_model=TransitionResponse,
    summary="Change session status",
    description="Mark a scheduled session Completed, Absent or Cancelled.",
)
async def set_session_status(
    session_id: str,
    data: StatusChangeRequest,
    runner: Runner,
    settings: Scheduling,
    actor: Actor,
) -> TransitionResponse:
    """Change a session's status and apply credits, curriculum and rewards.

    Repeating the current status is a no-op.

    Raises:
        HTTPException: 404 if the session does not exist, 400 if it is no
            longer scheduled, 409 on a concurrent ledger update.
    """
    try:
        return await runner.run(
            lambda db: SchedulingService(db, settings).set_status(session_id, data.status, actor)
        )
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post(
    "/{session_id}/cancel",
    response_model=CancellationOutcomeResponse,
    summary="Cancel session",
    description="Cancel a session, or it and every later session of its series, refunding credits.",
)
async def cancel_session(
    session_id: str,
    data: CancelRequest,
    runner: Runner,
    settings: Scheduling,
    actor: Actor,
) -> CancellationOutcomeResponse:
    """Cancel a session or the rest of its series."""
    try:
        return await runner.run(
            lambda db: SchedulingService(db, settings).cancel(session_id, data.scope, actor)
        )
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get(
    "/{session_id}/joinable",
    response_model=JoinableResponse,
    summary="Check meeting link",
)
async def get_joinable(
    session_id: str,
    runner: Runner,
    settings: Scheduling,
) -> JoinableResponse:
    """Check whether a session's meeting link is open now."""
    try:
        return await runner.run(lambda db: SchedulingService(db, settings).get_joinable(session_id))
    except SchedulingError as e:
        raise to_http_exception(e)
