# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification channel.

Creates notification records that the LMS shows in the user's
notification center.
"""

from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lms_enrollment.infrastructure.database.models.notification import Notification
from lms_enrollment.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)
from lms_enrollment.utils.datetime import utc_now


class InAppChannel(BaseChannel):
    """In-app notification channel.

    Adds a Notification row to the given session and flushes it; the
    caller owns the transaction.
    """

    DEFAULT_EXPIRATION_DAYS = 30

    def __init__(self, session: AsyncSession, expiration_days: int | None = None) -> None:
        super().__init__()
        self._session = session
        self._expiration_days = expiration_days or self.DEFAULT_EXPIRATION_DAYS

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.IN_APP

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Create an in-app notification record.

        Args:
            payload: The notification payload.

        Returns:
            ChannelResult with delivery status.
        """
        try:
            notification = Notification(
                recipient_id=payload.recipient_id,
                notification_type=payload.notification_type,
                title=payload.title,
                message=payload.message,
                data=dict(payload.data),
                sender_id=payload.sender_id,
                sender_role=payload.sender_role,
                is_read=False,
                expires_at=utc_now() + timedelta(days=self._expiration_days),
            )
            self._session.add(notification)
            await self._session.flush()
        except SQLAlchemyError as e:
            self.logger.error(
                "Failed to create in-app notification for user %s: %s",
                payload.recipient_id,
                str(e),
                exc_info=True,
            )
            return self.create_failure_result(f"Database error: {str(e)}")

        self.logger.info(
            "Created in-app notification %s for user %s",
            notification.id,
            payload.recipient_id,
        )
        return self.create_success_result(message_id=notification.id)
