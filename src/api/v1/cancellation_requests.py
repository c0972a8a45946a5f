# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cancellation request API endpoints.

This module provides endpoints for the cancellation workflow:
- POST / - Request cancellation of an upcoming session
- GET / - List requests
- POST /{request_id}/approve - Approve and cancel the session
- POST /{request_id}/deny - Deny the request
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import Actor, Runner, Scheduling, to_http_exception
from src.core.config.settings import SchedulingSettings
from src.core.exceptions import SchedulingError
from src.domains.cancellation import CancellationResolution, CancellationService
from src.domains.scheduling import LifecyclePolicy, SessionLifecycleManager
from src.models.cancellation import (
    CancellationRequestCreate,
    CancellationRequestResponse,
    CancellationResolutionResponse,
)
from src.models.common import CancellationStatus

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service(db: AsyncSession, settings: SchedulingSettings) -> CancellationService:
    """Create a CancellationService with a lifecycle manager in the same session."""
    lifecycle = SessionLifecycleManager(db, LifecyclePolicy.from_settings(settings))
    return CancellationService(db, lifecycle)


def _resolution_response(resolution: CancellationResolution) -> CancellationResolutionResponse:
    outcome = resolution.outcome
    return CancellationResolutionResponse(
        request=CancellationRequestResponse.model_validate(resolution.request),
        cancelled_count=outcome.cancelled_count if outcome else 0,
        credits_refunded=outcome.credits_refunded if outcome else 0,
        notices=resolution.notices,
    )


@router.post(
    "",
    response_model=CancellationRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request cancellation",
    description="Ask for an upcoming scheduled session to be cancelled.",
)
async def create_cancellation_request(
    data: CancellationRequestCreate,
    runner: Runner,
    settings: Scheduling,
) -> CancellationRequestResponse:
    """Create a pending cancellation request."""

    async def operation(db: AsyncSession) -> CancellationRequestResponse:
        request = await _get_service(db, settings).create_request(data.session_id, data.student_id)
        return CancellationRequestResponse.model_validate(request)

    try:
        return await runner.run(operation)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get(
    "",
    response_model=list[CancellationRequestResponse],
    summary="List cancellation requests",
)
async def list_cancellation_requests(
    runner: Runner,
    settings: Scheduling,
    request_status: Annotated[
        CancellationStatus | None, Query(alias="status", description="Filter by status")
    ] = None,
    student_id: Annotated[str | None, Query(description="Filter by student")] = None,
    session_id: Annotated[str | None, Query(description="Only the pending request for this session")] = None,
) -> list[CancellationRequestResponse]:
    """List cancellation requests, newest first."""

    async def operation(db: AsyncSession) -> list[CancellationRequestResponse]:
        service = _get_service(db, settings)
        if session_id:
            pending = await service.find_pending(session_id)
            requests = [pending] if pending else []
        else:
            requests = await service.list_requests(status=request_status, student_id=student_id)
        return [CancellationRequestResponse.model_validate(r) for r in requests]

    try:
        return await runner.run(operation)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post(
    "/{request_id}/approve",
    response_model=CancellationResolutionResponse,
    summary="Approve cancellation request",
    description="Approve the request, cancel the session and refund its credit.",
)
async def approve_cancellation_request(
    request_id: str,
    runner: Runner,
    settings: Scheduling,
    actor: Actor,
) -> CancellationResolutionResponse:
    """Approve a pending request.

    Raises:
        HTTPException: 404 if the request does not exist, 400 if it was
            already resolved.
    """

    async def operation(db: AsyncSession) -> CancellationResolutionResponse:
        return _resolution_response(await _get_service(db, settings).approve(request_id, actor))

    try:
        return await runner.run(operation)
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post(
    "/{request_id}/deny",
    response_model=CancellationResolutionResponse,
    summary="Deny cancellation request",
)
async def deny_cancellation_request(
    request_id: str,
    runner: Runner,
    settings: Scheduling,
    actor: Actor,
) -> CancellationResolutionResponse:
    """Deny a pending request. The session is left as it is."""

    async def operation(db: AsyncSession) -> CancellationResolutionResponse:
        return _resolution_response(await _get_service(db, settings).deny(request_id, actor))

    try:
        return await runner.run(operation)
    except SchedulingError as e:
        raise to_http_exception(e)
