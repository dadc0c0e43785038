# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the enrollment service.

Domains:
    auth: Password hashing and JWT validation.
    enrollment: Admission policy, enrollment lifecycle and statistics.
"""
