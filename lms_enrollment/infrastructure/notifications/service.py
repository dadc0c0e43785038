# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification service for delivering enrollment notifications.

NotificationService implements the NotificationDispatcher port of the
enrollment domain. Each delivery runs in its own database session so it
never shares a transaction with the enrollment write that triggered it.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms_enrollment.core.config.settings import NotificationSettings
from lms_enrollment.domains.enrollment.ports import NotificationMessage
from lms_enrollment.infrastructure.notifications.channels import (
    BaseChannel,
    ChannelResult,
    InAppChannel,
    NotificationPayload,
)

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for sending notifications to users.

    Attributes:
        settings: Notification settings.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        settings: NotificationSettings | None = None,
    ) -> None:
        """Initialize the notification service.

        Args:
            sessionmaker: Factory for delivery sessions.
            settings: Notification settings.
        """
        self._sessionmaker = sessionmaker
        self.settings = settings or NotificationSettings()

    async def send(
        self,
        payload: NotificationMessage,
        actor_id: str | None = None,
        actor_role: str | None = None,
    ) -> list[ChannelResult]:
        """Deliver a notification through every channel.

        Args:
            payload: Message for one recipient.
            actor_id: User whose action produced the notification.
            actor_role: Role of that user.

        Returns:
            List of channel results; empty when notifications are disabled.
        """
        if not self.settings.enabled:
            logger.debug("Notifications disabled, dropping %s", payload.notification_type)
            return []

        channel_payload = NotificationPayload(
            notification_type=payload.notification_type,
            title=payload.title,
            message=payload.message,
            recipient_id=payload.recipient_id,
            data=dict(payload.data),
            sender_id=actor_id,
            sender_role=actor_role,
        )

        async with self._sessionmaker() as session:
            results = await self._send_through_channels(session, channel_payload)
            await session.commit()

        for result in results:
            if not result.ok:
                logger.warning(
                    "Notification %s to %s not delivered via %s: %s",
                    payload.notification_type,
                    payload.recipient_id,
                    result.channel.value,
                    result.error_message,
                )
        return results

    def _channels(self, session: AsyncSession) -> list[BaseChannel]:
        return [InAppChannel(session, expiration_days=self.settings.expiration_days)]

    async def _send_through_channels(
        self,
        session: AsyncSession,
        payload: NotificationPayload,
    ) -> list[ChannelResult]:
        results: list[ChannelResult] = []
        for channel in self._channels(session):
            results.append(await channel.send(payload))
        return results


# Singleton instance management
_service_instance: NotificationService | None = None


def get_notification_service(
    sessionmaker: async_sessionmaker[AsyncSession],
    settings: NotificationSettings | None = None,
) -> NotificationService:
    """Get or create the notification service singleton."""
    global _service_instance
    if _service_instance is None:
        _service_instance = NotificationService(sessionmaker, settings)
    return _service_instance


def reset_notification_service() -> None:
    """Drop the singleton, e.g. after the database is closed."""
    global _service_instance
    _service_instance = None
