# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session scheduling domain.

This package provides:
- RecurringSessionGenerator: Weekly batches checked against availability
- SessionLifecycleManager: Status transitions and their side effects
- SchedulingService: API-facing facade over both
"""

from src.domains.scheduling.collaborators import (
    AnnouncementSink,
    AssignmentCreator,
    AssignmentTarget,
    DatabaseAssignmentCreator,
    DatabaseExperienceAwarder,
    ExperienceAwarder,
)
from src.domains.scheduling.generator import (
    Occurrence,
    RecurringBatchResult,
    RecurringSessionGenerator,
    SessionTemplate,
    SkippedOccurrence,
    find_conflict,
    plan_occurrences,
)
from src.domains.scheduling.lifecycle import (
    CancellationOutcome,
    LifecyclePolicy,
    SessionLifecycleManager,
    TransitionResult,
)
from src.domains.scheduling.service import SchedulingService

__all__ = [
    # Collaborators
    "AnnouncementSink",
    "AssignmentCreator",
    "AssignmentTarget",
    "DatabaseAssignmentCreator",
    "DatabaseExperienceAwarder",
    "ExperienceAwarder",
    # Generator
    "Occurrence",
    "RecurringBatchResult",
    "RecurringSessionGenerator",
    "SessionTemplate",
    "SkippedOccurrence",
    "find_conflict",
    "plan_occurrences",
    # Lifecycle
    "CancellationOutcome",
    "LifecyclePolicy",
    "SessionLifecycleManager",
    "TransitionResult",
    # Service
    "SchedulingService",
]
