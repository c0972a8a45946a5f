# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for templated announcements."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.infrastructure.notifications import (
    SYSTEM_SENDER_ID,
    AnnouncementService,
    render_template,
)


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    return db


class TestRenderTemplate:
    """Tests for render_template."""

    def test_replaces_known_placeholders(self):
        """Test every known placeholder is substituted."""
        text = render_template(
            "Hi [Parent Name], [Student Name] has [Credits Remaining] credits.",
            {"Parent Name": "Pat", "Student Name": "Sam", "Credits Remaining": 4},
        )

        assert text == "Hi Pat, Sam has 4 credits."

    def test_keeps_unknown_placeholders(self):
        """Test an unknown placeholder stays visible."""
        assert render_template("Hello [Nickname]", {}) == "Hello [Nickname]"

    def test_repeated_placeholder(self):
        """Test a placeholder used twice is replaced twice."""
        assert render_template("[A] and [A]", {"A": "x"}) == "x and x"


class TestAnnouncementService:
    """Tests for AnnouncementService."""

    @pytest.mark.asyncio
    async def test_sends_rendered_announcement(self, mock_db):
        """Test the announcement targets the recipient with rendered content."""
        mock_db.get.return_value = SimpleNamespace(title="Low Credit Alert", content="Hi [Parent Name]")
        service = AnnouncementService(mock_db)

        announcement = await service.send_templated_announcement(
            "parent-1",
            "low-credit-alert",
            {"Parent Name": "Pat"},
            title="Low Credit Alert for Sam",
        )

        assert announcement.title == "Low Credit Alert for Sam"
        assert announcement.content == "Hi Pat"
        assert announcement.target_user_ids == ["parent-1"]
        assert announcement.sent_by_id == SYSTEM_SENDER_ID
        mock_db.add.assert_called_once_with(announcement)
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_title_defaults_to_template_title(self, mock_db):
        """Test the template title is used when none is given."""
        mock_db.get.return_value = SimpleNamespace(title="Reminder", content="Body")

        announcement = await AnnouncementService(mock_db).send_templated_announcement("u-1", "reminder", {})

        assert announcement.title == "Reminder"

    @pytest.mark.asyncio
    async def test_missing_template_sends_nothing(self, mock_db):
        """Test a missing template is skipped without writing."""
        mock_db.get.return_value = None

        result = await AnnouncementService(mock_db).send_templated_announcement("u-1", "nope", {})

        assert result is None
        mock_db.add.assert_not_called()
