# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Availability domain package.

This package answers "can this teacher take a session at this time?" from
weekly slots and one-off unavailability.
"""

from src.domains.availability.index import AvailabilityIndex, WeeklyWindow

__all__ = [
    "AvailabilityIndex",
    "WeeklyWindow",
]
