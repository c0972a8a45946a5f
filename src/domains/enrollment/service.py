# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for program registrations and their credits.

This module provides the EnrollmentService class for:
- Enrolling a student in a program with an initial credit purchase
- Reading balances and ledger history
- Manual credit adjustments and ledger verification
- Reading and updating the enrollment's curriculum progress
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import CurriculumItemNotFoundError, ProgramNotFoundError
from src.domains.curriculum import CurriculumNode, CurriculumProgressService
from src.domains.ledger import SYSTEM_ACTOR, CreditLedger
from src.infrastructure.database.models import Enrollment, Program
from src.models.common import CurriculumStatus, EnrollmentStatus
from src.models.curriculum import (
    CurriculumNodeResponse,
    CurriculumProgressResponse,
    CurriculumStatusUpdateResponse,
)
from src.models.enrollment import (
    BalanceResponse,
    CreditAdjustmentResponse,
    CreditTransactionResponse,
    EnrollmentCreateRequest,
    EnrollmentResponse,
    LedgerAuditResponse,
)
from src.utils.datetime import local_now

logger = logging.getLogger(__name__)

INITIAL_PURCHASE_REASON = "Initial credit purchase"


def _node_response(node: CurriculumNode) -> CurriculumNodeResponse:
    return CurriculumNodeResponse(
        id=node.id,
        title=node.title,
        item_type=node.item_type,
        status=node.status,
        children=[_node_response(child) for child in node.children],
    )


class EnrollmentService:
    """Service for managing enrollments.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize enrollment service.

        Args:
            db: Async database session the caller commits.
        """
        self.db = db
        self.ledger = CreditLedger(db)
        self.progress = CurriculumProgressService(db)

    async def create_enrollment(
        self,
        request: EnrollmentCreateRequest,
        actor: str = SYSTEM_ACTOR,
    ) -> EnrollmentResponse:
        """Enroll a student in a program.

        The enrollment starts at zero credits; an initial purchase is
        recorded as the first ledger entry so the balance always equals the
        ledger sum. The program's curriculum is copied into the enrollment.

        Args:
            request: Enrollment data.
            actor: Name of who enrolled the student.

        Returns:
            The new enrollment.

        Raises:
            ProgramNotFoundError: If the program does not exist.
        """
        program = await self.db.get(Program, request.program_id)
        if program is None:
            raise ProgramNotFoundError(f"Program {request.program_id} not found")

        enrollment = Enrollment(
            student_id=request.student_id,
            program_id=request.program_id,
            teacher_id=request.teacher_id,
            status=EnrollmentStatus.ACTIVE.value,
            credits_remaining=0,
            date_enrolled=local_now(),
        )
        self.db.add(enrollment)
        await self.db.flush()

        if request.initial_credits > 0:
            await self.ledger.append(enrollment, request.initial_credits, INITIAL_PURCHASE_REASON, actor=actor)

        await self.progress.create_progress(enrollment.id, program.id)

        logger.info(
            "Student enrolled: enrollment=%s, student=%s, program=%s, credits=%d",
            enrollment.id,
            request.student_id,
            request.program_id,
            request.initial_credits,
        )
        return EnrollmentResponse.model_validate(enrollment)

    async def get_enrollment(self, enrollment_id: str) -> EnrollmentResponse:
        """Get an enrollment by ID."""
        return EnrollmentResponse.model_validate(await self.ledger.get_enrollment(enrollment_id))

    async def get_balance(self, enrollment_id: str) -> BalanceResponse:
        """Get an enrollment's credit balance."""
        return BalanceResponse(
            enrollment_id=enrollment_id,
            credits_remaining=await self.ledger.get_balance(enrollment_id),
        )

    async def list_transactions(self, enrollment_id: str) -> list[CreditTransactionResponse]:
        """List an enrollment's ledger entries, newest first."""
        transactions = await self.ledger.list_transactions(enrollment_id)
        return [CreditTransactionResponse.model_validate(t) for t in transactions]

    async def adjust_credits(
        self,
        enrollment_id: str,
        change: int,
        reason: str,
        actor: str,
    ) -> CreditAdjustmentResponse:
        """Apply a manual credit adjustment.

        Raises:
            ValidationError: If the change is zero or has no reason.
            EnrollmentNotFoundError: If the enrollment does not exist.
            InsufficientCreditsError: If the balance would go negative.
        """
        entry = await self.ledger.adjust(enrollment_id, change, reason, actor)
        return CreditAdjustmentResponse(
            transaction=CreditTransactionResponse.model_validate(entry.transaction),
            credits_remaining=entry.balance_after,
        )

    async def verify_ledger(self, enrollment_id: str) -> LedgerAuditResponse:
        """Compare the cached balance with the sum of the ledger."""
        audit = await self.ledger.verify(enrollment_id)
        return LedgerAuditResponse(
            enrollment_id=audit.enrollment_id,
            cached_balance=audit.cached_balance,
            ledger_sum=audit.ledger_sum,
            transaction_count=audit.transaction_count,
            consistent=audit.consistent,
        )

    async def get_curriculum_progress(self, enrollment_id: str) -> CurriculumProgressResponse:
        """Get an enrollment's curriculum tree and progress.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
        """
        await self.ledger.get_enrollment(enrollment_id)
        tree = await self.progress.load_tree(enrollment_id)
        return CurriculumProgressResponse(
            enrollment_id=enrollment_id,
            progress_percent=tree.progress_percent(),
            is_complete=tree.is_complete(),
            items=[_node_response(root) for root in tree.roots],
        )

    async def set_curriculum_item_status(
        self,
        enrollment_id: str,
        item_id: str,
        status: CurriculumStatus,
    ) -> CurriculumStatusUpdateResponse:
        """Set a curriculum item's status and cascade it.

        Completes an active enrollment once every item is Completed.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
            CurriculumItemNotFoundError: If the item is not in the tree.
        """
        enrollment = await self.ledger.get_enrollment(enrollment_id)

        update = await self.progress.set_item_status(enrollment_id, item_id, status)
        if not update.found:
            raise CurriculumItemNotFoundError(
                f"Curriculum item {item_id} not found in enrollment {enrollment_id}"
            )

        completed = False
        if update.is_complete and enrollment.status == EnrollmentStatus.ACTIVE.value:
            enrollment.status = EnrollmentStatus.COMPLETED.value
            completed = True
            await self.db.flush()
            logger.info("Enrollment completed: enrollment=%s", enrollment_id)

        return CurriculumStatusUpdateResponse(
            enrollment_id=enrollment_id,
            item_id=item_id,
            progress_percent=update.progress_percent,
            is_complete=update.is_complete,
            enrollment_completed=completed,
        )
