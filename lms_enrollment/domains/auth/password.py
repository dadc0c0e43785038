# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment password hashing using bcrypt.

Courses can be protected by an enrollment password. The course service
stores its bcrypt hash; this module verifies what a student types when
joining and hashes new passwords for tooling and tests.

Example:
    >>> hasher = PasswordHasher()
    >>> course_hash = hasher.hash("spring-2025")
    >>> hasher.verify("spring-2025", course_hash)
    True
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)


class PasswordHasher:
    """Bcrypt hashing and verification of enrollment passwords.

    Satisfies the PasswordVerifier port of the admission policy.

    Attributes:
        _rounds: Bcrypt cost factor used when hashing.
    """

    def __init__(self, rounds: int = 12) -> None:
        """Initialize the hasher.

        Args:
            rounds: Bcrypt cost factor. Tests pass a low value to stay fast.
        """
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Hash an enrollment password.

        Raises:
            ValueError: If password is empty.
        """
        if not password:
            raise ValueError("Password cannot be empty")

        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a plain password against a stored hash.

        Args:
            password: Password typed by the student.
            password_hash: Bcrypt hash stored on the course.

        Returns:
            True if they match. A malformed hash never matches.
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.warning("Enrollment password hash is malformed: %s", str(e))
            return False

