# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum progress API schemas."""

from pydantic import BaseModel, Field

from src.models.common import CurriculumStatus


class CurriculumNodeResponse(BaseModel):
    """A node of an enrollment's curriculum tree."""

    id: str
    title: str
    item_type: str
    status: CurriculumStatus
    children: list["CurriculumNodeResponse"] = Field(default_factory=list)


class CurriculumProgressResponse(BaseModel):
    """An enrollment's curriculum tree with its progress."""

    enrollment_id: str
    progress_percent: int
    is_complete: bool
    items: list[CurriculumNodeResponse]


class CurriculumStatusUpdateRequest(BaseModel):
    """Request to change a curriculum item's status."""

    status: CurriculumStatus


class CurriculumStatusUpdateResponse(BaseModel):
    """Response for a curriculum status change."""

    enrollment_id: str
    item_id: str
    progress_percent: int
    is_complete: bool
    enrollment_completed: bool
