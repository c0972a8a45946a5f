# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain services.

This package provides the EnrollmentService for enrolling students in
programs and for their credit balances and curriculum progress.
"""

from src.domains.enrollment.service import INITIAL_PURCHASE_REASON, EnrollmentService

__all__ = [
    "EnrollmentService",
    "INITIAL_PURCHASE_REASON",
]
