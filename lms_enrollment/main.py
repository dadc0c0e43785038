# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ASGI entry point.

Usage:
    uvicorn lms_enrollment.main:app --host 0.0.0.0 --port 8000
"""

from lms_enrollment.api import create_app

app = create_app()
