# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared enums for the scheduling engine.

Enum values match the strings the portals already store, so records written
by either side stay readable by the other.
"""

from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle state of a tutoring session."""

    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    ABSENT = "Absent"

    @property
    def is_terminal(self) -> bool:
        """Whether the session can no longer change status."""
        return self is not SessionStatus.SCHEDULED


class SessionType(str, Enum):
    """Kind of session.

    The type decides whether the session consumes a purchased credit.
    """

    CURRICULUM = "Curriculum Session"
    PARENT_TEACHER = "Parent-Teacher Meeting"
    SPECIAL_REQUEST = "Special Request"
    DEMO = "Demo Session"

    @property
    def is_credit_bearing(self) -> bool:
        """Whether completing or cancelling this session touches the ledger."""
        return is_credit_bearing(self)


def is_credit_bearing(session_type: "SessionType | str") -> bool:
    """Check whether a session type is charged against enrollment credits.

    Demo sessions and parent-teacher meetings are free: they are neither
    deducted on completion nor refunded on cancellation.

    Args:
        session_type: SessionType or its stored string value.

    Returns:
        True if the session type consumes credits.
    """
    return SessionType(session_type) not in (SessionType.DEMO, SessionType.PARENT_TEACHER)


class EnrollmentStatus(str, Enum):
    """State of a student's registration in a program."""

    ACTIVE = "Active"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class CurriculumStatus(str, Enum):
    """Progression state of a curriculum item."""

    LOCKED = "Locked"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class CurriculumItemType(str, Enum):
    """Level of a node in the curriculum tree."""

    CHAPTER = "Chapter"
    TOPIC = "Topic"
    SUB_TOPIC = "Sub-Topic"


class CancellationStatus(str, Enum):
    """State of a cancellation request."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class CancellationScope(str, Enum):
    """How much of a recurring series a cancellation covers."""

    SINGLE = "single"
    SERIES = "series"


class AssignmentStatus(str, Enum):
    """Submission state of an assignment."""

    PENDING_GRADING = "Pending Grading"
    GRADED = "Graded"
    SUBMITTED_LATE = "Submitted Late"
    NOT_SUBMITTED = "Not Submitted"
