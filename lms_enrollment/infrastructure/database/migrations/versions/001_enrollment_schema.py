# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment schema.

Creates the enrollments table with its (student_id, course_id) unique
constraint and optimistic version column, the per-course approved seat
counters, and the in-app notifications table.

Revision ID: 001_enrollment_schema
Revises:
Create Date: 2025-01-20
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_enrollment_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create enrollment tables."""

    op.create_table(
        "enrollments",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("student_id", sa.String(36), nullable=False),
        sa.Column("course_id", sa.String(36), nullable=False),
        # 'pending', 'approved', 'rejected', 'cancelled', 'dropped', 'completed'
        sa.Column("status", sa.String(20), nullable=False),
        # 'student', 'ta', 'auditor'
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        # 'self', 'admin', 'teacher'
        sa.Column("method", sa.String(20), nullable=False, server_default="self"),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("enrolled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("responded_by", sa.String(36), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("dropped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_grade", sa.Float, nullable=True),
        sa.Column("progress", JSON_TYPE, nullable=False),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
        sa.CheckConstraint(
            "final_grade IS NULL OR (final_grade >= 0 AND final_grade <= 100)",
            name="ck_enrollments_final_grade_range",
        ),
    )
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"])
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])
    op.create_index("ix_enrollments_status", "enrollments", ["status"])
    # Daily self-enrollment count
    op.create_index(
        "ix_enrollments_student_method_enrolled",
        "enrollments",
        ["student_id", "method", "enrolled_at"],
    )

    op.create_table(
        "course_seat_counters",
        sa.Column("course_id", sa.String(36), nullable=False),
        sa.Column("approved_count", sa.Integer, nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("course_id"),
        sa.CheckConstraint("approved_count >= 0", name="ck_course_seat_counters_non_negative"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("recipient_id", sa.String(36), nullable=False),
        sa.Column("notification_type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("data", JSON_TYPE, nullable=False),
        sa.Column("sender_id", sa.String(36), nullable=True),
        sa.Column("sender_role", sa.String(20), nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])


def downgrade() -> None:
    """Drop enrollment tables."""

    op.drop_index("ix_notifications_recipient_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("course_seat_counters")
    op.drop_index("ix_enrollments_student_method_enrolled", table_name="enrollments")
    op.drop_index("ix_enrollments_status", table_name="enrollments")
    op.drop_index("ix_enrollments_course_id", table_name="enrollments")
    op.drop_index("ix_enrollments_student_id", table_name="enrollments")
    op.drop_table("enrollments")
