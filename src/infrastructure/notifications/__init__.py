# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Announcements for the scheduling engine.

This package stores templated announcements shown on portal dashboards.
The scheduling engine uses it for low-credit alerts to parents.

Usage:
    from src.infrastructure.notifications import AnnouncementService

    sink = AnnouncementService(db)
    await sink.send_templated_announcement(
        target_user_id=parent_id,
        template_id="low-credit-alert",
        variables={"Parent Name": "Ana", "Credits Remaining": 2},
    )
"""

from src.infrastructure.notifications.service import (
    SYSTEM_SENDER_ID,
    AnnouncementService,
    render_template,
)

__all__ = [
    "AnnouncementService",
    "SYSTEM_SENDER_ID",
    "render_template",
]
