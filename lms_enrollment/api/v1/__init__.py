# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    enrollments: Enrollment admission and lifecycle endpoints.
"""

from fastapi import APIRouter

from lms_enrollment.api.v1 import enrollments

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])

__all__ = ["router"]
