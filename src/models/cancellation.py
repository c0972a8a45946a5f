# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cancellation request API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import CancellationStatus


class CancellationRequestCreate(BaseModel):
    """A student or parent's request to cancel a session."""

    session_id: str = Field(min_length=1)
    student_id: str = Field(min_length=1)


class CancellationRequestResponse(BaseModel):
    """Response for a cancellation request."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    student_id: str
    requested_at: datetime
    status: CancellationStatus
    resolved_at: datetime | None
    resolved_by: str | None


class CancellationResolutionResponse(BaseModel):
    """Response for approving or denying a request."""

    request: CancellationRequestResponse
    cancelled_count: int = 0
    credits_refunded: int = 0
    notices: list[str] = Field(default_factory=list)
