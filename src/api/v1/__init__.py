# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    sessions: Session booking, recurring series, status changes, cancellation.
    enrollments: Enrollments, credit balances, ledger, curriculum progress.
    cancellation_requests: Cancellation request workflow.
"""

from fastapi import APIRouter

from src.api.v1 import cancellation_requests, enrollments, sessions

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
router.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])
router.include_router(
    cancellation_requests.router,
    prefix="/cancellation-requests",
    tags=["Cancellation Requests"],
)

__all__ = ["router"]
