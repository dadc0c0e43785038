# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the enrollment service.

All timestamps are stored in UTC (TIMESTAMPTZ) and all Python datetimes are
timezone-aware. Values read back from SQLite come back naive, so anything
compared against "now" goes through ensure_utc first.

Usage:
------
    from lms_enrollment.utils.datetime import utc_now

    # For SQLAlchemy model defaults
    created_at = Column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def utc_today_start() -> datetime:
    """Get the start of today in UTC (midnight).

    Returns:
        Timezone-aware datetime for today at 00:00:00 UTC.
    """
    now = utc_now()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def is_expired(expiry: datetime | None) -> bool:
    """Check if a datetime has passed (is expired).

    Args:
        expiry: The expiry datetime to check.

    Returns:
        True if expired, False otherwise. A missing expiry never expires.
    """
    if expiry is None:
        return False

    return utc_now() >= ensure_utc(expiry)
