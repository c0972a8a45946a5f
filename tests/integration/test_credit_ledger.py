# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the credit ledger and enrollment service."""

import pytest

from src.core.exceptions import (
    CurriculumItemNotFoundError,
    EnrollmentNotFoundError,
    InsufficientCreditsError,
    ProgramNotFoundError,
    ValidationError,
)
from src.domains.enrollment import INITIAL_PURCHASE_REASON, EnrollmentService
from src.domains.ledger import CreditLedger
from src.models.common import CurriculumStatus, EnrollmentStatus
from src.models.enrollment import EnrollmentCreateRequest

pytestmark = pytest.mark.integration


class TestEnrollment:
    """Tests for enrolling a student."""

    @pytest.mark.asyncio
    async def test_initial_purchase_is_first_ledger_entry(self, runner, enroll):
        """Test the initial credits are recorded in the ledger."""
        enrollment_id = await enroll(10)

        transactions = await runner.run(lambda db: EnrollmentService(db).list_transactions(enrollment_id))
        balance = await runner.run(lambda db: EnrollmentService(db).get_balance(enrollment_id))

        assert balance.credits_remaining == 10
        assert len(transactions) == 1
        assert transactions[0].change == 10
        assert transactions[0].reason == INITIAL_PURCHASE_REASON
        assert transactions[0].actor_name == "Admin"

    @pytest.mark.asyncio
    async def test_zero_credit_enrollment_has_empty_ledger(self, runner, enroll):
        """Test no transaction is written for a zero purchase."""
        enrollment_id = await enroll(0)

        audit = await runner.run(lambda db: EnrollmentService(db).verify_ledger(enrollment_id))

        assert audit.transaction_count == 0
        assert audit.consistent is True

    @pytest.mark.asyncio
    async def test_copies_curriculum_locked(self, runner, enroll, center):
        """Test the enrollment gets its own Locked copy of the curriculum."""
        enrollment_id = await enroll(1)

        progress = await runner.run(lambda db: EnrollmentService(db).get_curriculum_progress(enrollment_id))

        assert progress.progress_percent == 0
        assert [item.id for item in progress.items] == [center.chapter_1, center.chapter_2]
        assert [child.id for child in progress.items[0].children] == [center.topic_1_1, center.topic_1_2]
        assert all(item.status == CurriculumStatus.LOCKED for item in progress.items)

    @pytest.mark.asyncio
    async def test_unknown_program(self, runner, center):
        """Test enrolling in a missing program is rejected."""
        request = EnrollmentCreateRequest(
            student_id=center.student_id,
            program_id="missing",
            teacher_id=center.teacher_id,
        )

        with pytest.raises(ProgramNotFoundError):
            await runner.run(lambda db: EnrollmentService(db).create_enrollment(request))


class TestLedger:
    """Tests for ledger appends and the balance invariant."""

    @pytest.mark.asyncio
    async def test_adjustments_keep_balance_equal_to_ledger_sum(self, runner, enroll):
        """Test the cached balance tracks every adjustment."""
        enrollment_id = await enroll(5)

        await runner.run(lambda db: CreditLedger(db).adjust(enrollment_id, 3, "Bonus pack", "Admin"))
        entry = await runner.run(lambda db: CreditLedger(db).adjust(enrollment_id, -2, "Correction", "Admin"))
        audit = await runner.run(lambda db: CreditLedger(db).verify(enrollment_id))

        assert entry.balance_before == 8
        assert entry.balance_after == 6
        assert audit.cached_balance == 6
        assert audit.ledger_sum == 6
        assert audit.transaction_count == 3
        assert audit.consistent is True

    @pytest.mark.asyncio
    async def test_negative_balance_rejected_without_writes(self, runner, enroll):
        """Test an overdraft is refused and leaves the ledger untouched."""
        enrollment_id = await enroll(2)

        with pytest.raises(InsufficientCreditsError) as exc_info:
            await runner.run(lambda db: CreditLedger(db).adjust(enrollment_id, -3, "Too much", "Admin"))

        audit = await runner.run(lambda db: CreditLedger(db).verify(enrollment_id))
        assert exc_info.value.available == 2
        assert audit.cached_balance == 2
        assert audit.transaction_count == 1

    @pytest.mark.parametrize("change,reason", [(0, "Nothing"), (1, "   ")])
    @pytest.mark.asyncio
    async def test_invalid_adjustments(self, runner, enroll, change, reason):
        """Test zero changes and blank reasons are rejected."""
        enrollment_id = await enroll(1)

        with pytest.raises(ValidationError):
            await runner.run(lambda db: CreditLedger(db).adjust(enrollment_id, change, reason, "Admin"))

    @pytest.mark.asyncio
    async def test_unknown_enrollment(self, runner, center):
        """Test a missing enrollment is reported."""
        with pytest.raises(EnrollmentNotFoundError):
            await runner.run(lambda db: CreditLedger(db).get_balance("missing"))

    @pytest.mark.asyncio
    async def test_transactions_newest_first(self, runner, enroll):
        """Test history is listed newest first."""
        enrollment_id = await enroll(4)
        await runner.run(lambda db: CreditLedger(db).adjust(enrollment_id, 1, "Later", "Admin"))

        transactions = await runner.run(lambda db: CreditLedger(db).list_transactions(enrollment_id))

        assert len(transactions) == 2
        assert {t.reason for t in transactions} == {"Later", INITIAL_PURCHASE_REASON}

    @pytest.mark.asyncio
    async def test_find_enrollment_prefers_active(self, runner, enroll, center):
        """Test an active enrollment wins over a newer completed one."""
        active_id = await enroll(1)
        finished_id = await enroll(1)

        async def finish(db):
            enrollment = await CreditLedger(db).get_enrollment(finished_id)
            enrollment.status = EnrollmentStatus.COMPLETED.value

        await runner.run(finish)

        found = await runner.run(lambda db: CreditLedger(db).find_enrollment(center.student_id, center.program_id))
        any_status = await runner.run(
            lambda db: CreditLedger(db).find_enrollment(center.student_id, center.program_id, active_only=False)
        )

        assert found.id == active_id
        assert any_status.id == active_id


class TestCurriculumProgress:
    """Tests for direct curriculum updates on an enrollment."""

    @pytest.mark.asyncio
    async def test_completing_every_chapter_completes_enrollment(self, runner, enroll, center):
        """Test the enrollment completes once the whole tree is done."""
        enrollment_id = await enroll(1)

        first = await runner.run(
            lambda db: EnrollmentService(db).set_curriculum_item_status(
                enrollment_id, center.chapter_1, CurriculumStatus.COMPLETED
            )
        )
        second = await runner.run(
            lambda db: EnrollmentService(db).set_curriculum_item_status(
                enrollment_id, center.chapter_2, CurriculumStatus.COMPLETED
            )
        )
        enrollment = await runner.run(lambda db: EnrollmentService(db).get_enrollment(enrollment_id))

        assert first.progress_percent == 60
        assert first.enrollment_completed is False
        assert second.is_complete is True
        assert second.enrollment_completed is True
        assert enrollment.status == EnrollmentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_unknown_item(self, runner, enroll):
        """Test updating an item outside the tree is reported."""
        enrollment_id = await enroll(1)

        with pytest.raises(CurriculumItemNotFoundError):
            await runner.run(
                lambda db: EnrollmentService(db).set_curriculum_item_status(
                    enrollment_id, "ghost", CurriculumStatus.COMPLETED
                )
            )

    @pytest.mark.asyncio
    async def test_enrollments_do_not_share_progress(self, runner, enroll, center):
        """Test two enrollments in the same program progress separately."""
        first_id = await enroll(1)
        second_id = await enroll(1)

        await runner.run(
            lambda db: EnrollmentService(db).set_curriculum_item_status(
                first_id, center.topic_1_1, CurriculumStatus.COMPLETED
            )
        )
        other = await runner.run(lambda db: EnrollmentService(db).get_curriculum_progress(second_id))

        assert other.progress_percent == 0
