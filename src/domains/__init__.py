# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the scheduling engine.

This package contains domain services that encapsulate business logic.
Each service works against one database session so that a caller can run
several of them inside a single atomic unit.

Domains:
    availability: Teacher weekly slots and one-off unavailability lookups.
    ledger: Append-only credit transactions per enrollment.
    curriculum: Per-enrollment curriculum trees and the status cascade.
    scheduling: Recurring generation and the session lifecycle.
    cancellation: Student/parent cancellation requests.
    enrollment: Enrollment creation, balances and curriculum progress.
"""
