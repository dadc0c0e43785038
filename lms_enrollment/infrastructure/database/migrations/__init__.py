# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Alembic environment and revisions for the enrollment database:
- 001: enrollments, seat counters and in-app notifications
- 002: catalog read models (users, subjects, courses, quizzes, assignments)
"""
