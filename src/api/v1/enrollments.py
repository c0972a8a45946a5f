# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment API endpoints.

This module provides endpoints for enrollments and their credits:
- POST / - Enroll a student in a program
- GET /{enrollment_id} - Get an enrollment
- GET /{enrollment_id}/balance - Get the credit balance
- GET /{enrollment_id}/transactions - List ledger entries
- POST /{enrollment_id}/credits - Manual credit adjustment
- GET /{enrollment_id}/ledger/verify - Compare balance with ledger sum
- GET /{enrollment_id}/curriculum - Get curriculum progress
- PUT /{enrollment_id}/curriculum/{item_id} - Set a curriculum item's status
"""

import logging

from fastapi import APIRouter, status

from src.api.dependencies import Actor, Runner, to_http_exception
from src.core.exceptions import SchedulingError
from src.domains.enrollment import EnrollmentService
from src.models.curriculum import (
    CurriculumProgressResponse,
    CurriculumStatusUpdateRequest,
    CurriculumStatusUpdateResponse,
)
from src.models.enrollment import (
    BalanceResponse,
    CreditAdjustmentRequest,
    CreditAdjustmentResponse,
    CreditTransactionResponse,
    EnrollmentCreateRequest,
    EnrollmentResponse,
    LedgerAuditResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll student",
    description="Enroll a student in a program, record the initial credit purchase and copy the curriculum.",
)
async def create_enrollment(
    data: EnrollmentCreateRequest,
    runner: Runner,
    actor: Actor,
) -> EnrollmentResponse:
    """Enroll a student in a program."""
    logger.info("Enrolling student: student=%s, program=%s", data.student_id, data.program_id)
    try:
        return await runner.run(lambda db: EnrollmentService(db).create_enrollment(data, actor))
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get("/{enrollment_id}", response_model=EnrollmentResponse, summary="Get enrollment")
async def get_enrollment(enrollment_id: str, runner: Runner) -> EnrollmentResponse:
    try:
        return await runner.run(lambda db: EnrollmentService(db).get_enrollment(enrollment_id))
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get("/{enrollment_id}/balance", response_model=BalanceResponse, summary="Get credit balance")
async def get_balance(enrollment_id: str, runner: Runner) -> BalanceResponse:
    try:
        return await runner.run(lambda db: EnrollmentService(db).get_balance(enrollment_id))
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get(
    "/{enrollment_id}/transactions",
    response_model=list[CreditTransactionResponse],
    summary="List credit transactions",
    description="List the enrollment's ledger entries, newest first.",
)
async def list_transactions(enrollment_id: str, runner: Runner) -> list[CreditTransactionResponse]:
    try:
        return await runner.run(lambda db: EnrollmentService(db).list_transactions(enrollment_id))
    except SchedulingError as e:
        raise to_http_exception(e)


@router.post(
    "/{enrollment_id}/credits",
    response_model=CreditAdjustmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Adjust credits",
    description="Add or remove credits manually. The balance can never go below zero.",
)
async def adjust_credits(
    enrollment_id: str,
    data: CreditAdjustmentRequest,
    runner: Runner,
    actor: Actor,
) -> CreditAdjustmentResponse:
    """Apply a manual credit adjustment.

    Raises:
        HTTPException: 404 if the enrollment does not exist, 400 if the
            balance would go negative, 409 on a concurrent update.
    """
    logger.info("Adjusting credits: enrollment=%s, change=%+d, by=%s", enrollment_id, data.change, actor)
    try:
        return await runner.run(
            lambda db: EnrollmentService(db).adjust_credits(enrollment_id, data.change, data.reason, actor)
        )
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get(
    "/{enrollment_id}/ledger/verify",
    response_model=LedgerAuditResponse,
    summary="Verify ledger",
    description="Recompute the ledger sum and compare it with the cached balance.",
)
async def verify_ledger(enrollment_id: str, runner: Runner) -> LedgerAuditResponse:
    try:
        return await runner.run(lambda db: EnrollmentService(db).verify_ledger(enrollment_id))
    except SchedulingError as e:
        raise to_http_exception(e)


@router.get(
    "/{enrollment_id}/curriculum",
    response_model=CurriculumProgressResponse,
    summary="Get curriculum progress",
)
async def get_curriculum_progress(enrollment_id: str, runner: Runner) -> CurriculumProgressResponse:
    try:
        return await runner.run(lambda db: EnrollmentService(db).get_curriculum_progress(enrollment_id))
    except SchedulingError as e:
        raise to_http_exception(e)


@router.put(
    "/{enrollment_id}/curriculum/{item_id}",
    response_model=CurriculumStatusUpdateResponse,
    summary="Set curriculum item status",
    description=(
        "Set an item's status. Completing an item completes its descendants and "
        "ancestors are re-derived from their children."
    ),
)
async def set_curriculum_item_status(
    enrollment_id: str,
    item_id: str,
    data: CurriculumStatusUpdateRequest,
    runner: Runner,
) -> CurriculumStatusUpdateResponse:
    """Set a curriculum item's status.

    Raises:
        HTTPException: 404 if the enrollment or item does not exist.
    """
    try:
        return await runner.run(
            lambda db: EnrollmentService(db).set_curriculum_item_status(enrollment_id, item_id, data.status)
        )
    except SchedulingError as e:
        raise to_http_exception(e)
