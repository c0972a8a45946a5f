# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial scheduling schema.

Revision ID: 001
Revises:
Create Date: 2025-01-15

Creates the tables for users, programs and their curriculum templates,
enrollments with the credit ledger and curriculum progress, sessions,
teacher availability, cancellation requests and the collaborator tables
(assignments, message templates, announcements). Seeds the message
template used for low-credit alerts.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LOW_CREDIT_ALERT_CONTENT = (
    "Hi [Parent Name],\n\n"
    "This is a notification that [Student Name]'s credit balance for [Program Name] is running low. "
    "They have [Credits Remaining] credits left.\n\n"
    "Please visit the billing page to purchase more credits.\n\n"
    "Thank you,\n"
    "[Company Name]"
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=False), nullable=False),
    ]


def upgrade() -> None:
    """Create scheduling tables."""
    # =========================================================================
    # Users and programs
    # =========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="Student"),
        sa.Column("parent_id", sa.String(36), nullable=True),
        sa.Column("experience_points", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_users_parent_id", "users", ["parent_id"])

    op.create_table(
        "programs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="Active"),
        *_timestamps(),
    )

    op.create_table(
        "program_curriculum_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "program_id",
            sa.String(36),
            sa.ForeignKey("programs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("parent_id", sa.String(36), nullable=True),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("item_type", sa.String(20), nullable=False),
        sa.Column("student_resources", sa.JSON, nullable=False),
        sa.Column("teacher_resources", sa.JSON, nullable=False),
        sa.Column("assignment_templates", sa.JSON, nullable=False),
    )
    op.create_index("ix_program_curriculum_items_program_id", "program_curriculum_items", ["program_id"])

    # =========================================================================
    # Enrollments, ledger and progress
    # =========================================================================
    op.create_table(
        "enrollments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("student_id", sa.String(36), nullable=False),
        sa.Column("program_id", sa.String(36), sa.ForeignKey("programs.id"), nullable=False),
        sa.Column("teacher_id", sa.String(36), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Active"),
        sa.Column("credits_remaining", sa.Integer, nullable=False, server_default="0"),
        sa.Column("date_enrolled", sa.DateTime(timezone=False), nullable=False),
        sa.Column("version", sa.Integer, nullable=False),
        *_timestamps(),
        sa.CheckConstraint("credits_remaining >= 0", name="ck_enrollments_credits_non_negative"),
    )
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"])
    op.create_index("ix_enrollments_program_id", "enrollments", ["program_id"])

    op.create_table(
        "credit_transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "enrollment_id",
            sa.String(36),
            sa.ForeignKey("enrollments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("change", sa.Integer, nullable=False),
        sa.Column("reason", sa.String(500), nullable=False),
        sa.Column("date", sa.DateTime(timezone=False), nullable=False),
        sa.Column("actor_name", sa.String(200), nullable=False, server_default="System"),
        sa.Column("session_id", sa.String(36), nullable=True),
    )
    op.create_index("ix_credit_transactions_enrollment_id", "credit_transactions", ["enrollment_id"])

    op.create_table(
        "curriculum_progress_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "enrollment_id",
            sa.String(36),
            sa.ForeignKey("enrollments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("item_id", sa.String(36), nullable=False),
        sa.Column("parent_item_id", sa.String(36), nullable=True),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("item_type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Locked"),
        sa.Column("student_resources", sa.JSON, nullable=False),
        sa.Column("teacher_resources", sa.JSON, nullable=False),
        sa.Column("assignment_templates", sa.JSON, nullable=False),
        sa.UniqueConstraint("enrollment_id", "item_id", name="uq_progress_enrollment_item"),
    )
    op.create_index("ix_curriculum_progress_items_enrollment_id", "curriculum_progress_items", ["enrollment_id"])

    # =========================================================================
    # Sessions and availability
    # =========================================================================
    op.create_table(
        "sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("start", sa.DateTime(timezone=False), nullable=False),
        sa.Column("end", sa.DateTime(timezone=False), nullable=False),
        sa.Column("student_id", sa.String(36), nullable=True),
        sa.Column("teacher_id", sa.String(36), nullable=False),
        sa.Column("program_id", sa.String(36), nullable=False),
        sa.Column("curriculum_item_id", sa.String(36), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="Scheduled"),
        sa.Column("session_type", sa.String(40), nullable=False, server_default="Curriculum Session"),
        sa.Column("recurring_id", sa.String(36), nullable=True),
        sa.Column("session_url", sa.String(500), nullable=True),
        sa.Column("parent_summary", sa.Text, nullable=True),
        sa.Column("private_notes", sa.Text, nullable=True),
        sa.Column("prospect_name", sa.String(200), nullable=True),
        sa.Column("version", sa.Integer, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_sessions_teacher_start", "sessions", ["teacher_id", "start"])
    op.create_index("ix_sessions_student_start", "sessions", ["student_id", "start"])
    op.create_index("ix_sessions_recurring_id", "sessions", ["recurring_id"])

    op.create_table(
        "availability_slots",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("teacher_id", sa.String(36), nullable=False),
        sa.Column("day_of_week", sa.Integer, nullable=False),
        sa.Column("start_time", sa.Time, nullable=False),
        sa.Column("end_time", sa.Time, nullable=False),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_slots_day_of_week"),
    )
    op.create_index("ix_availability_slots_teacher_id", "availability_slots", ["teacher_id"])

    op.create_table(
        "unavailability",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("teacher_id", sa.String(36), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
    )
    op.create_index("ix_unavailability_teacher_id", "unavailability", ["teacher_id"])

    op.create_table(
        "cancellation_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("session_id", sa.String(36), nullable=False),
        sa.Column("student_id", sa.String(36), nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=False), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Pending"),
        sa.Column("resolved_at", sa.DateTime(timezone=False), nullable=True),
        sa.Column("resolved_by", sa.String(200), nullable=True),
    )
    op.create_index("ix_cancellation_requests_session_id", "cancellation_requests", ["session_id"])

    # =========================================================================
    # Collaborator tables
    # =========================================================================
    op.create_table(
        "assignments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("student_id", sa.String(36), nullable=False),
        sa.Column("enrollment_id", sa.String(36), nullable=False),
        sa.Column("program_id", sa.String(36), nullable=False),
        sa.Column("status", sa.String(30), nullable=False, server_default="Not Submitted"),
        sa.Column("due_date", sa.Date, nullable=False),
        sa.Column("url", sa.String(500), nullable=True),
        sa.Column("instructions", sa.Text, nullable=True),
        sa.Column("curriculum_item_id", sa.String(36), nullable=True),
        sa.Column("template_id", sa.String(36), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_assignments_student_id", "assignments", ["student_id"])
    op.create_index("ix_assignments_enrollment_id", "assignments", ["enrollment_id"])

    message_templates = op.create_table(
        "message_templates",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
    )

    op.create_table(
        "announcements",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("target_user_ids", sa.JSON, nullable=False),
        sa.Column("template_id", sa.String(64), nullable=True),
        sa.Column("date_sent", sa.DateTime(timezone=False), nullable=False),
        sa.Column("sent_by_id", sa.String(64), nullable=False, server_default="system-auto"),
    )

    op.bulk_insert(
        message_templates,
        [
            {
                "id": "low-credit-alert",
                "title": "Low Credit Alert",
                "content": LOW_CREDIT_ALERT_CONTENT,
            }
        ],
    )


def downgrade() -> None:
    """Drop scheduling tables."""
    op.drop_table("announcements")
    op.drop_table("message_templates")
    op.drop_table("assignments")
    op.drop_table("cancellation_requests")
    op.drop_table("unavailability")
    op.drop_table("availability_slots")
    op.drop_table("sessions")
    op.drop_table("curriculum_progress_items")
    op.drop_table("credit_transactions")
    op.drop_table("enrollments")
    op.drop_table("program_curriculum_items")
    op.drop_table("programs")
    op.drop_table("users")
