# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification delivery for enrollment status changes.

Key Components:
- NotificationService: Dispatcher used by the enrollment notifier
- InAppChannel: Writes notification records shown in the LMS

Usage:
    from lms_enrollment.infrastructure.notifications import get_notification_service

    service = get_notification_service(get_sessionmaker(), settings.notifications)
    await service.send(message, actor_id="teacher-1", actor_role="teacher")

Configuration (environment variables):
- NOTIFICATION_ENABLED: Deliver notifications (default: true)
- NOTIFICATION_EXPIRATION_DAYS: Days before in-app notifications expire (default: 30)
"""

from lms_enrollment.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    DeliveryStatus,
    InAppChannel,
    NotificationPayload,
)
from lms_enrollment.infrastructure.notifications.service import (
    NotificationService,
    get_notification_service,
    reset_notification_service,
)

__all__ = [
    # Service
    "NotificationService",
    "get_notification_service",
    "reset_notification_service",
    # Channel types
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "DeliveryStatus",
    "NotificationPayload",
    # Channels
    "InAppChannel",
]
