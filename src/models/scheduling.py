# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session scheduling API schemas.

This module defines request/response schemas for session creation,
recurring batches, status transitions and cancellation.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.models.common import CancellationScope, SessionStatus, SessionType
from src.utils.datetime import to_naive


class SessionCreateRequest(BaseModel):
    """Request to schedule a session.

    Timestamps with an offset are converted to local wall-clock time.
    """

    teacher_id: str = Field(min_length=1)
    program_id: str = Field(min_length=1)
    start: datetime
    end: datetime
    session_type: SessionType = SessionType.CURRICULUM
    student_id: str | None = None
    curriculum_item_id: str | None = None
    title: str | None = Field(default=None, max_length=255)
    session_url: str | None = Field(default=None, max_length=500)
    parent_summary: str | None = None
    prospect_name: str | None = Field(default=None, max_length=200)

    @field_validator("start", "end")
    @classmethod
    def _naive(cls, value: datetime) -> datetime:
        return to_naive(value)

    @model_validator(mode="after")
    def _check_range(self) -> "SessionCreateRequest":
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class RecurringSessionRequest(SessionCreateRequest):
    """Request to schedule a weekly series.

    ``editing_existing`` skips the credit precondition, used when a
    session is being rescheduled rather than booked.
    """

    count: int = Field(ge=1, description="Number of weekly occurrences")
    editing_existing: bool = False


class SessionResponse(BaseModel):
    """Response for a single session."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    start: datetime
    end: datetime
    student_id: str | None
    teacher_id: str
    program_id: str
    curriculum_item_id: str | None
    status: SessionStatus
    session_type: SessionType
    recurring_id: str | None
    session_url: str | None
    parent_summary: str | None
    prospect_name: str | None


class SkippedOccurrenceResponse(BaseModel):
    """An occurrence that was not created."""

    occurrence_date: date
    start: datetime
    reason: str


class RecurringBatchResponse(BaseModel):
    """Response for a recurring batch."""

    recurring_id: str | None
    created: list[SessionResponse]
    skipped: list[SkippedOccurrenceResponse]
    skipped_dates: list[date]
    message: str


class StatusChangeRequest(BaseModel):
    """Request to change a session's status."""

    status: SessionStatus


class TransitionResponse(BaseModel):
    """Response for a status change."""

    session: SessionResponse
    previous_status: SessionStatus
    changed: bool
    credits_deducted: int = 0
    credits_refunded: int = 0
    credits_remaining: int | None = None
    low_credit_alert_sent: bool = False
    assignments_created: list[str] = Field(default_factory=list)
    enrollment_completed: bool = False
    xp_awarded: int = 0
    notices: list[str] = Field(default_factory=list)


class CancelRequest(BaseModel):
    """Request to cancel a session or the rest of its series."""

    scope: CancellationScope = CancellationScope.SINGLE


class CancellationOutcomeResponse(BaseModel):
    """Response for a cancellation."""

    cancelled_count: int
    credits_refunded: int
    cancelled_session_ids: list[str]
    notices: list[str] = Field(default_factory=list)


class JoinableResponse(BaseModel):
    """Whether a session's meeting link is open."""

    session_id: str
    joinable: bool
    session_url: str | None
