# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment and credit ledger API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.common import EnrollmentStatus


class EnrollmentCreateRequest(BaseModel):
    """Request to enroll a student in a program."""

    student_id: str = Field(min_length=1)
    program_id: str = Field(min_length=1)
    teacher_id: str = Field(min_length=1)
    initial_credits: int = Field(default=0, ge=0)


class EnrollmentResponse(BaseModel):
    """Response for an enrollment."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    program_id: str
    teacher_id: str
    status: EnrollmentStatus
    credits_remaining: int
    date_enrolled: datetime


class BalanceResponse(BaseModel):
    """Current credit balance of an enrollment."""

    enrollment_id: str
    credits_remaining: int


class CreditTransactionResponse(BaseModel):
    """Response for one ledger entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    enrollment_id: str
    change: int
    reason: str
    date: datetime
    actor_name: str
    session_id: str | None


class CreditAdjustmentRequest(BaseModel):
    """Manual credit adjustment by an admin."""

    change: int = Field(description="Signed, non-zero number of credits")
    reason: str = Field(min_length=1, max_length=500)

    @field_validator("change")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("change must be non-zero")
        return value


class CreditAdjustmentResponse(BaseModel):
    """Response for a manual adjustment."""

    transaction: CreditTransactionResponse
    credits_remaining: int


class LedgerAuditResponse(BaseModel):
    """Comparison of the cached balance with the ledger sum."""

    enrollment_id: str
    cached_balance: int
    ledger_sum: int
    transaction_count: int
    consistent: bool
