# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for persistence and outbound notifications.

This package contains:
- Database connections, ORM models and migrations (PostgreSQL)
- Notifications (templated announcements)
"""
