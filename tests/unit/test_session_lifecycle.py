# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for SessionLifecycleManager with mocked collaborators."""

from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.exceptions import InvalidTransitionError, SessionNotFoundError
from src.domains.scheduling import SessionLifecycleManager
from src.models.common import SessionStatus, SessionType, is_credit_bearing


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
def announcements():
    """Create mock announcement sink."""
    sink = AsyncMock()
    sink.send_templated_announcement.return_value = SimpleNamespace(id="ann-1")
    return sink


@pytest.fixture
def experience():
    """Create mock experience awarder."""
    return AsyncMock()


@pytest.fixture
def assignments():
    """Create mock assignment creator."""
    return AsyncMock()


@pytest.fixture
def manager(mock_db, lifecycle_policy, announcements, experience, assignments):
    """Create lifecycle manager with mocked collaborators."""
    return SessionLifecycleManager(
        mock_db,
        lifecycle_policy,
        announcements=announcements,
        experience=experience,
        assignments=assignments,
    )


def _session(status="Scheduled", session_type=SessionType.DEMO.value, **overrides):
    start = datetime(2030, 1, 7, 10, 0)
    values = {
        "id": "session-1",
        "status": status,
        "session_type": session_type,
        "start": start,
        "end": start + timedelta(hours=1),
        "student_id": None,
        "teacher_id": "teacher-1",
        "program_id": "program-1",
        "curriculum_item_id": None,
        "recurring_id": None,
        "session_url": "https://meet.example.com/abc",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestSetStatus:
    """Tests for status transitions."""

    @pytest.mark.asyncio
    async def test_missing_session(self, manager, mock_db):
        """Test an unknown session id is reported."""
        mock_db.get.return_value = None

        with pytest.raises(SessionNotFoundError):
            await manager.set_status("nope", SessionStatus.COMPLETED)

    @pytest.mark.asyncio
    async def test_same_status_is_noop(self, manager, mock_db, experience):
        """Test re-applying the current status changes nothing."""
        mock_db.get.return_value = _session(status="Completed")

        result = await manager.set_status("session-1", SessionStatus.COMPLETED)

        assert result.changed is False
        assert result.notices == []
        experience.add_experience_points.assert_not_called()
        mock_db.flush.assert_not_called()

    @pytest.mark.asyncio
    async def test_terminal_status_is_final(self, manager, mock_db):
        """Test a completed session cannot be marked absent."""
        mock_db.get.return_value = _session(status="Completed")

        with pytest.raises(InvalidTransitionError):
            await manager.set_status("session-1", SessionStatus.ABSENT)

    @pytest.mark.asyncio
    async def test_demo_completion_skips_ledger_and_xp(self, manager, mock_db, experience):
        """Test a demo without a student only changes status."""
        session = _session()
        mock_db.get.return_value = session

        result = await manager.set_status("session-1", SessionStatus.COMPLETED)

        assert session.status == "Completed"
        assert result.credit_entry is None
        assert result.xp_awarded == 0
        experience.add_experience_points.assert_not_called()
        mock_db.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_completion_awards_xp(self, manager, mock_db, experience):
        """Test the student gets the configured XP on completion."""
        mock_db.get.return_value = _session(student_id="student-1")
        no_enrollment = MagicMock()
        no_enrollment.scalars.return_value.all.return_value = []
        mock_db.execute.return_value = no_enrollment

        result = await manager.set_status("session-1", SessionStatus.COMPLETED)

        experience.add_experience_points.assert_awaited_once_with("student-1", 50)
        assert result.xp_awarded == 50
        assert "Awarded 50XP to student for completing a session!" in result.notices


class TestJoinable:
    """Tests for is_joinable."""

    @pytest.mark.parametrize(
        "offset_minutes,expected",
        [
            (-16, False),
            (-15, True),
            (30, True),
            (70, True),
            (71, False),
        ],
    )
    def test_join_window(self, manager, offset_minutes, expected):
        """Test the link opens 15 minutes before and closes 10 minutes after."""
        session = _session()
        now = session.start + timedelta(minutes=offset_minutes)

        assert manager.is_joinable(session, now) is expected

    def test_cancelled_session_is_not_joinable(self, manager):
        """Test only scheduled sessions can be joined."""
        session = _session(status="Cancelled")

        assert manager.is_joinable(session, session.start) is False

    def test_session_without_url_is_not_joinable(self, manager):
        """Test a session needs a meeting link."""
        session = _session(session_url=None)

        assert manager.is_joinable(session, session.start) is False


class TestCreditBearing:
    """Tests for which session types touch the ledger."""

    @pytest.mark.parametrize(
        "session_type,expected",
        [
            (SessionType.CURRICULUM, True),
            (SessionType.SPECIAL_REQUEST, True),
            (SessionType.DEMO, False),
            (SessionType.PARENT_TEACHER, False),
        ],
    )
    def test_is_credit_bearing(self, session_type, expected):
        assert session_type.is_credit_bearing is expected
        assert is_credit_bearing(session_type.value) is expected
