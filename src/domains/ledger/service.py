# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credit ledger for enrollments.

This module provides the CreditLedger class for:
- Appending credit transactions (purchases, deductions, refunds, adjustments)
- Reading balances and transaction history
- Verifying that the cached balance matches the ledger

The enrollment's ``credits_remaining`` is a projection of its transactions.
Both are written in the caller's transaction. The enrollment row is
version-checked, so a concurrent writer that read the same balance fails at
flush instead of silently overwriting it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import (
    EnrollmentNotFoundError,
    InsufficientCreditsError,
    ValidationError,
)
from src.infrastructure.database.models import CreditTransaction, Enrollment
from src.models.common import EnrollmentStatus
from src.utils.datetime import local_now

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "System"


@dataclass(frozen=True)
class LedgerEntry:
    """Outcome of one ledger append.

    Attributes:
        transaction: The appended transaction.
        balance_before: Balance before the append.
        balance_after: Balance after the append.
    """

    transaction: CreditTransaction
    balance_before: int
    balance_after: int

    def crossed_threshold(self, threshold: int) -> bool:
        """Check whether this entry moved the balance from above to at-or-below a threshold."""
        return self.balance_before > threshold >= self.balance_after


@dataclass(frozen=True)
class LedgerAudit:
    """Result of comparing the cached balance with the ledger sum."""

    enrollment_id: str
    cached_balance: int
    ledger_sum: int
    transaction_count: int

    @property
    def consistent(self) -> bool:
        return self.cached_balance == self.ledger_sum


class CreditLedger:
    """Append-only credit ledger.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the ledger.

        Args:
            db: Async database session the caller commits.
        """
        self.db = db

    async def get_enrollment(self, enrollment_id: str) -> Enrollment:
        """Get an enrollment by ID.

        Raises:
            EnrollmentNotFoundError: If not found.
        """
        enrollment = await self.db.get(Enrollment, enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFoundError(f"Enrollment {enrollment_id} not found")
        return enrollment

    async def find_enrollment(
        self,
        student_id: str | None,
        program_id: str,
        active_only: bool = True,
    ) -> Enrollment | None:
        """Find the enrollment for a student in a program.

        When inactive enrollments are allowed, an active one still wins.

        Args:
            student_id: Student identifier.
            program_id: Program identifier.
            active_only: Only consider Active enrollments.

        Returns:
            The matching enrollment, or None.
        """
        if not student_id:
            return None

        query = select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.program_id == program_id,
        )
        if active_only:
            query = query.where(Enrollment.status == EnrollmentStatus.ACTIVE.value)

        result = await self.db.execute(query.order_by(Enrollment.date_enrolled.desc()))
        enrollments = result.scalars().all()
        for enrollment in enrollments:
            if enrollment.status == EnrollmentStatus.ACTIVE.value:
                return enrollment
        return enrollments[0] if enrollments else None

    async def get_balance(self, enrollment_id: str) -> int:
        """Get the cached balance of an enrollment.

        Raises:
            EnrollmentNotFoundError: If not found.
        """
        enrollment = await self.get_enrollment(enrollment_id)
        return enrollment.credits_remaining

    async def list_transactions(self, enrollment_id: str) -> list[CreditTransaction]:
        """List an enrollment's transactions, newest first.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
        """
        await self.get_enrollment(enrollment_id)
        result = await self.db.execute(
            select(CreditTransaction)
            .where(CreditTransaction.enrollment_id == enrollment_id)
            .order_by(CreditTransaction.date.desc(), CreditTransaction.id.desc())
        )
        return list(result.scalars().all())

    async def append(
        self,
        enrollment: Enrollment,
        change: int,
        reason: str,
        actor: str = SYSTEM_ACTOR,
        session_id: str | None = None,
    ) -> LedgerEntry:
        """Append a transaction and move the cached balance with it.

        Args:
            enrollment: Enrollment loaded in this session.
            change: Signed credit change.
            reason: Audit trail text.
            actor: Name of who made the change.
            session_id: Session that caused the change, if any.

        Returns:
            LedgerEntry with balances before and after.

        Raises:
            InsufficientCreditsError: If the balance would go negative.
        """
        before = enrollment.credits_remaining
        after = before + change
        if after < 0:
            raise InsufficientCreditsError(
                f"Enrollment {enrollment.id} has {before} credit(s), cannot apply {change}",
                available=before,
                required=-change,
            )

        transaction = CreditTransaction(
            enrollment_id=enrollment.id,
            change=change,
            reason=reason,
            date=local_now(),
            actor_name=actor,
            session_id=session_id,
        )
        enrollment.credits_remaining = after
        self.db.add(transaction)
        await self.db.flush()

        logger.info(
            "Credit transaction: enrollment=%s, change=%+d, balance=%d->%d, by=%s",
            enrollment.id,
            change,
            before,
            after,
            actor,
        )

        return LedgerEntry(transaction=transaction, balance_before=before, balance_after=after)

    async def deduct_for_session(
        self,
        enrollment: Enrollment,
        status: str,
        session_id: str,
        actor: str = SYSTEM_ACTOR,
    ) -> LedgerEntry | None:
        """Consume one credit for an attended or missed session.

        Returns:
            The ledger entry, or None if the balance was already zero.
        """
        if enrollment.credits_remaining <= 0:
            logger.info(
                "Skipped credit deduction, no credits left: enrollment=%s, session=%s",
                enrollment.id,
                session_id,
            )
            return None
        return await self.append(
            enrollment,
            -1,
            f"Session marked as {status}",
            actor=actor,
            session_id=session_id,
        )

    async def refund_for_session(
        self,
        enrollment: Enrollment,
        session_id: str,
        session_date: str,
        actor: str = SYSTEM_ACTOR,
    ) -> LedgerEntry:
        """Return one credit for a cancelled session."""
        return await self.append(
            enrollment,
            1,
            f"Credit refund for cancelled session on {session_date}",
            actor=actor,
            session_id=session_id,
        )

    async def adjust(
        self,
        enrollment_id: str,
        change: int,
        reason: str,
        actor: str,
    ) -> LedgerEntry:
        """Apply a manual credit adjustment.

        Args:
            enrollment_id: Enrollment identifier.
            change: Signed, non-zero credit change.
            reason: Why the adjustment was made.
            actor: Name of the admin making the change.

        Raises:
            ValidationError: If change is zero or reason is blank.
            EnrollmentNotFoundError: If the enrollment does not exist.
            InsufficientCreditsError: If the balance would go negative.
        """
        if change == 0:
            raise ValidationError("Credit adjustment must be non-zero")
        if not reason.strip():
            raise ValidationError("Credit adjustment requires a reason")

        enrollment = await self.get_enrollment(enrollment_id)
        return await self.append(enrollment, change, reason.strip(), actor=actor)

    async def verify(self, enrollment_id: str) -> LedgerAudit:
        """Recompute the ledger sum and compare it with the cached balance.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist.
        """
        enrollment = await self.get_enrollment(enrollment_id)
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(CreditTransaction.change), 0),
                func.count(CreditTransaction.id),
            ).where(CreditTransaction.enrollment_id == enrollment_id)
        )
        ledger_sum, count = result.one()

        audit = LedgerAudit(
            enrollment_id=enrollment_id,
            cached_balance=enrollment.credits_remaining,
            ledger_sum=int(ledger_sum),
            transaction_count=int(count),
        )
        if not audit.consistent:
            logger.error(
                "Ledger mismatch: enrollment=%s, cached=%d, ledger=%d",
                enrollment_id,
                audit.cached_balance,
                audit.ledger_sum,
            )
        return audit
