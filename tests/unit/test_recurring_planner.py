# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for recurring occurrence planning and conflict detection."""

from datetime import date, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from src.core.exceptions import ValidationError
from src.domains.scheduling import (
    Occurrence,
    RecurringBatchResult,
    RecurringSessionGenerator,
    SessionTemplate,
    SkippedOccurrence,
    find_conflict,
    plan_occurrences,
)
from src.domains.scheduling.generator import (
    SKIP_STUDENT_CONFLICT,
    SKIP_TEACHER_CONFLICT,
    SKIP_UNAVAILABLE,
)
from src.models.common import SessionType


@pytest.fixture
def template(monday_morning) -> SessionTemplate:
    """A one-hour curriculum session template."""
    return SessionTemplate(
        title="Algebra - Sam",
        start=monday_morning,
        end=monday_morning + timedelta(hours=1),
        teacher_id="teacher-1",
        program_id="program-1",
        student_id="student-1",
    )


def _session(start, end, teacher_id="teacher-x", student_id="student-x"):
    return SimpleNamespace(start=start, end=end, teacher_id=teacher_id, student_id=student_id)


class TestPlanOccurrences:
    """Tests for plan_occurrences."""

    def test_weekly_spacing_keeps_duration(self, template):
        """Test occurrences are a week apart and keep the duration."""
        occurrences = plan_occurrences(template, 3)

        assert [o.index for o in occurrences] == [0, 1, 2]
        assert occurrences[0].start == template.start
        assert occurrences[2].start == template.start + timedelta(weeks=2)
        assert all(o.end - o.start == timedelta(hours=1) for o in occurrences)


class TestFindConflict:
    """Tests for find_conflict."""

    def test_free_slot(self, template):
        """Test no clash when nothing overlaps."""
        occurrence = Occurrence(0, template.start, template.end)
        existing = [_session(template.end, template.end + timedelta(hours=1), teacher_id="teacher-1")]

        assert find_conflict(occurrence, template, existing) is None

    def test_teacher_overlap(self, template):
        """Test the teacher's own session is a clash."""
        occurrence = Occurrence(0, template.start, template.end)
        existing = [_session(template.start + timedelta(minutes=30), template.end, teacher_id="teacher-1")]

        assert find_conflict(occurrence, template, existing) == SKIP_TEACHER_CONFLICT

    def test_student_overlap(self, template):
        """Test the student's session with another teacher is a clash."""
        occurrence = Occurrence(0, template.start, template.end)
        existing = [_session(template.start, template.end, student_id="student-1")]

        assert find_conflict(occurrence, template, existing) == SKIP_STUDENT_CONFLICT

    def test_demo_ignores_student_overlap(self, template):
        """Test demo sessions only check the teacher."""
        demo = SessionTemplate(
            title="Demo",
            start=template.start,
            end=template.end,
            teacher_id="teacher-1",
            program_id="program-1",
            session_type=SessionType.DEMO,
            student_id="student-1",
        )
        occurrence = Occurrence(0, demo.start, demo.end)
        existing = [_session(demo.start, demo.end, student_id="student-1")]

        assert find_conflict(occurrence, demo, existing) is None


class TestBatchResult:
    """Tests for RecurringBatchResult reporting."""

    def test_summary_lists_skipped_dates_once(self):
        """Test each skipped date is reported once."""
        start = datetime(2030, 1, 21, 10, 0)
        result = RecurringBatchResult(
            recurring_id="r-1",
            created=[object(), object()],
            skipped=[
                SkippedOccurrence(2, start, SKIP_TEACHER_CONFLICT),
                SkippedOccurrence(2, start, SKIP_UNAVAILABLE),
            ],
        )

        assert result.skipped_dates == [date(2030, 1, 21)]
        assert result.summary() == (
            "Successfully created 2 session(s). "
            "Skipped 1 date(s) due to conflicts or unavailability: 2030-01-21"
        )

    def test_summary_without_skips(self):
        """Test the summary is short when nothing was skipped."""
        assert RecurringBatchResult(recurring_id=None).summary() == "Successfully created 0 session(s)."


class TestValidate:
    """Tests for request validation before any read."""

    @pytest.fixture
    def generator(self):
        return RecurringSessionGenerator(AsyncMock(), max_occurrences=10)

    @pytest.mark.parametrize("count", [0, -1, 11])
    def test_rejects_bad_counts(self, generator, template, count):
        """Test counts outside 1..max are rejected."""
        with pytest.raises(ValidationError):
            generator.validate(template, count)

    def test_rejects_curriculum_without_student(self, generator, template):
        """Test curriculum sessions need a student."""
        no_student = SessionTemplate(
            title=template.title,
            start=template.start,
            end=template.end,
            teacher_id=template.teacher_id,
            program_id=template.program_id,
        )

        with pytest.raises(ValidationError):
            generator.validate(no_student, 1)

    @pytest.mark.asyncio
    async def test_generate_validates_before_touching_store(self, template):
        """Test a zero count never reaches the database."""
        db = AsyncMock()
        generator = RecurringSessionGenerator(db)

        with pytest.raises(ValidationError):
            await generator.generate(template, 0)

        db.execute.assert_not_called()
        db.add.assert_not_called()
