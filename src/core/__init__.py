# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for the scheduling engine.

This package contains shared configuration and the engine error taxonomy:
- config: Application configuration and settings
- exceptions: Errors raised by scheduling, ledger and curriculum operations
"""
