# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get the transaction runner every engine operation runs through
- Get the acting user's name from the request
- Get scheduling settings

Authentication is handled in front of this service; the caller's display
name arrives in the ``X-Actor-Name`` header and is recorded on ledger
entries.

Example:
    @router.get("/enrollments/{enrollment_id}/balance")
    async def get_balance(
        enrollment_id: str,
        runner: Runner,
    ):
        ...
"""

import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from src.core.config import get_settings
from src.core.config.settings import SchedulingSettings
from src.core.exceptions import (
    ConcurrencyConflictError,
    NotFoundError,
    PreconditionFailedError,
    SchedulingError,
    StoreTimeoutError,
    ValidationError,
)
from src.domains.ledger import SYSTEM_ACTOR
from src.infrastructure.database.connection import (
    DatabaseError,
    TransactionRunner,
    get_transaction_runner,
)

logger = logging.getLogger(__name__)


def get_runner() -> TransactionRunner:
    """Get the shared transaction runner.

    Raises:
        HTTPException: If the database is not initialized.
    """
    try:
        return get_transaction_runner()
    except DatabaseError as e:
        logger.error("Transaction runner unavailable: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not available",
        )


def get_actor(x_actor_name: Annotated[str | None, Header()] = None) -> str:
    """Get the acting user's display name.

    Args:
        x_actor_name: Value of the X-Actor-Name header.

    Returns:
        The name, or the system actor when the header is absent.
    """
    if x_actor_name and x_actor_name.strip():
        return x_actor_name.strip()
    return SYSTEM_ACTOR


def get_scheduling_settings() -> SchedulingSettings:
    """Get scheduling rules from application settings."""
    return get_settings().scheduling


def to_http_exception(error: SchedulingError) -> HTTPException:
    """Map an engine error to an HTTP error.

    Args:
        error: Error raised by an engine operation.

    Returns:
        HTTPException with the matching status code.
    """
    if isinstance(error, ValidationError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, PreconditionFailedError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, ConcurrencyConflictError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, StoreTimeoutError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    detail = {"message": error.message, "retryable": error.retryable}
    if error.details:
        detail["details"] = error.details
    headers = {"Retry-After": "1"} if error.retryable else None
    return HTTPException(status_code=code, detail=detail, headers=headers)


# Type aliases for cleaner endpoint signatures
Runner = Annotated[TransactionRunner, Depends(get_runner)]
Actor = Annotated[str, Depends(get_actor)]
Scheduling = Annotated[SchedulingSettings, Depends(get_scheduling_settings)]
