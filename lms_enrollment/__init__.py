"""LMS Enrollment Service.

Admission control and lifecycle management for course enrollments:
capacity-bounded admission, approval workflows, prerequisite checks,
re-enrollment throttling and status-change notifications.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
