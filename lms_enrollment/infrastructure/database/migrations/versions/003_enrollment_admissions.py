# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment admission log.

Adds enrollment_admissions, one row per admission cycle, and moves the
daily self-enrollment count onto it. Enrollment records are reset in
place on re-enrollment and cannot count repeated cycles.

Revision ID: 003_enrollment_admissions
Revises: 002_catalog_read_models
Create Date: 2025-02-03
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "003_enrollment_admissions"
down_revision: Union[str, None] = "002_catalog_read_models"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the admission log and backfill the current cycles."""

    op.create_table(
        "enrollment_admissions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("student_id", sa.String(36), nullable=False),
        sa.Column("course_id", sa.String(36), nullable=False),
        # 'self', 'admin', 'teacher'
        sa.Column("method", sa.String(20), nullable=False),
        sa.Column("admitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_enrollment_admissions_student_method_admitted",
        "enrollment_admissions",
        ["student_id", "method", "admitted_at"],
    )

    # The latest cycle of each record keeps counting toward today's limit
    op.execute(
        "INSERT INTO enrollment_admissions (id, student_id, course_id, method, admitted_at) "
        "SELECT id, student_id, course_id, method, enrolled_at FROM enrollments"
    )

    op.drop_index("ix_enrollments_student_method_enrolled", table_name="enrollments")


def downgrade() -> None:
    """Drop the admission log."""

    op.create_index(
        "ix_enrollments_student_method_enrolled",
        "enrollments",
        ["student_id", "method", "enrolled_at"],
    )
    op.drop_index(
        "ix_enrollment_admissions_student_method_admitted",
        table_name="enrollment_admissions",
    )
    op.drop_table("enrollment_admissions")
