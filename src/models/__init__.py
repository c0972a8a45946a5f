# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic models for API requests and responses.

This package contains the schemas exchanged over the HTTP API:
- common: Shared enums (statuses, session types, scopes)
- scheduling: Sessions, recurring batches, transitions
- enrollment: Enrollments, balances, ledger entries
- curriculum: Curriculum trees and progress
- cancellation: Cancellation requests
"""
