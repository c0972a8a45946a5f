# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Announcement service for templated portal messages.

This service handles the announcement flow:
1. Loading the message template by id
2. Rendering ``[Placeholder]`` variables into its content
3. Storing an Announcement targeted at the recipient

Announcements are written in the caller's session, so a message triggered by
a session transition is only visible if the transition commits.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.models import Announcement, MessageTemplate
from src.utils.datetime import local_now

logger = logging.getLogger(__name__)

SYSTEM_SENDER_ID = "system-auto"

_PLACEHOLDER = re.compile(r"\[([^\[\]]+)\]")


def render_template(content: str, variables: Mapping[str, Any]) -> str:
    """Replace ``[Name]`` placeholders with variable values.

    Unknown placeholders are left as they are so a typo in a template stays
    visible instead of silently disappearing.

    Args:
        content: Template body.
        variables: Values keyed by placeholder name without brackets.

    Returns:
        Rendered text.

    Example:
        >>> render_template("Hi [Parent Name]", {"Parent Name": "Ana"})
        'Hi Ana'
    """

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables:
            return str(variables[name])
        return match.group(0)

    return _PLACEHOLDER.sub(substitute, content)


class AnnouncementService:
    """Database-backed announcement sink.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession, sender_id: str = SYSTEM_SENDER_ID) -> None:
        """Initialize the announcement service.

        Args:
            db: Async database session the caller commits.
            sender_id: Sender recorded on automatic announcements.
        """
        self.db = db
        self.sender_id = sender_id

    async def send_templated_announcement(
        self,
        target_user_id: str,
        template_id: str,
        variables: Mapping[str, Any],
        *,
        title: str | None = None,
    ) -> Announcement | None:
        """Render a message template and announce it to one user.

        Args:
            target_user_id: Recipient user id.
            template_id: MessageTemplate id.
            variables: Placeholder values.
            title: Announcement title, defaults to the template title.

        Returns:
            The stored announcement, or None if the template does not exist.
        """
        template = await self.db.get(MessageTemplate, template_id)
        if template is None:
            logger.warning("Message template not found, announcement skipped: template=%s", template_id)
            return None

        announcement = Announcement(
            title=title or template.title,
            content=render_template(template.content, variables),
            target_user_ids=[target_user_id],
            template_id=template_id,
            date_sent=local_now(),
            sent_by_id=self.sender_id,
        )
        self.db.add(announcement)
        await self.db.flush()

        logger.info(
            "Announcement sent: template=%s, target=%s, announcement=%s",
            template_id,
            target_user_id,
            announcement.id,
        )
        return announcement
