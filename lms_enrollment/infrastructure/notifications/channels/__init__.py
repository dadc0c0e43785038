# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification channels.

- InAppChannel: Creates notification records in the database

Usage:
    channel = InAppChannel(session)
    result = await channel.send(
        NotificationPayload(
            notification_type="enrollment_status",
            title="Enrollment approved",
            message='Your enrollment in the course "Algebra" has been approved.',
            recipient_id=student_id,
        )
    )
"""

from lms_enrollment.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    DeliveryStatus,
    NotificationPayload,
)
from lms_enrollment.infrastructure.notifications.channels.in_app import InAppChannel

__all__ = [
    # Base types
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "DeliveryStatus",
    "NotificationPayload",
    # Channels
    "InAppChannel",
]
