# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exception hierarchy for the scheduling engine.

This module defines the errors shared by scheduling, ledger, curriculum and
cancellation operations:
- SchedulingError: Base exception for all engine errors
- ValidationError: Malformed input, rejected before any write
- PreconditionFailedError: Valid input the current state does not permit
- NotFoundError: An id did not resolve
- ConcurrencyConflictError: A ledger write kept losing races
- StoreTimeoutError: The backing store did not answer in time

Retryable errors carry ``retryable = True`` so the API layer can tell the
caller to try again.
"""


class SchedulingError(Exception):
    """Base exception for all scheduling engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    retryable: bool = False

    def __init__(self, message: str, details: dict | None = None):
        """Initialize scheduling error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ValidationError(SchedulingError):
    """Malformed input such as a zero or negative occurrence count."""


class PreconditionFailedError(SchedulingError):
    """The request is well formed but the current state forbids it."""


class InsufficientCreditsError(PreconditionFailedError):
    """The enrollment balance cannot cover the requested operation.

    Attributes:
        available: Credits currently on the enrollment.
        required: Credits the operation needs.
    """

    def __init__(self, message: str, available: int, required: int):
        super().__init__(message, {"available": available, "required": required})
        self.available = available
        self.required = required


class InvalidTransitionError(PreconditionFailedError):
    """A session or request is not in a state that allows the transition."""


class NotFoundError(SchedulingError):
    """Base class for unresolved identifiers."""


class SessionNotFoundError(NotFoundError):
    """Raised when a session id does not resolve."""


class EnrollmentNotFoundError(NotFoundError):
    """Raised when an enrollment id does not resolve."""


class ProgramNotFoundError(NotFoundError):
    """Raised when a program id does not resolve."""


class CurriculumItemNotFoundError(NotFoundError):
    """Raised when a curriculum item is missing from an enrollment's tree."""


class CancellationRequestNotFoundError(NotFoundError):
    """Raised when a cancellation request id does not resolve."""


class ConcurrencyConflictError(SchedulingError):
    """A write kept losing optimistic-concurrency races and was abandoned."""

    retryable = True


class StoreTimeoutError(SchedulingError):
    """The backing store did not complete the operation in time."""

    retryable = True
