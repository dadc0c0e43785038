# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication helpers.

Exports:
    PasswordHasher: Bcrypt hashing of course enrollment passwords.
    JWTManager: Validation of access tokens issued by the LMS.
"""

from lms_enrollment.domains.auth.jwt import (
    InvalidTokenError,
    JWTError,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)
from lms_enrollment.domains.auth.password import PasswordHasher

__all__ = [
    "PasswordHasher",
    "JWTManager",
    "JWTError",
    "TokenExpiredError",
    "InvalidTokenError",
    "TokenPayload",
]
