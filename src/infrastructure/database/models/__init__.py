# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ORM models for the scheduling engine.

Importing this package registers every table on ``Base.metadata``.
"""

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, new_id
from src.infrastructure.database.models.communication import Announcement, Assignment, MessageTemplate
from src.infrastructure.database.models.enrollment import (
    CreditTransaction,
    CurriculumProgressItem,
    Enrollment,
)
from src.infrastructure.database.models.program import Program, ProgramCurriculumItem
from src.infrastructure.database.models.scheduling import (
    AvailabilitySlot,
    CancellationRequest,
    TutoringSession,
    Unavailability,
)
from src.infrastructure.database.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "new_id",
    # Users and programs
    "User",
    "Program",
    "ProgramCurriculumItem",
    # Enrollment and ledger
    "Enrollment",
    "CreditTransaction",
    "CurriculumProgressItem",
    # Scheduling
    "TutoringSession",
    "AvailabilitySlot",
    "Unavailability",
    "CancellationRequest",
    # Collaborators
    "Assignment",
    "Announcement",
    "MessageTemplate",
]
