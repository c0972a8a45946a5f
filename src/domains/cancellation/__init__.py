# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cancellation request domain.

This package provides the request/approve/deny workflow that lets students
and parents ask for an upcoming session to be cancelled.
"""

from src.domains.cancellation.service import CancellationResolution, CancellationService

__all__ = [
    "CancellationResolution",
    "CancellationService",
]
