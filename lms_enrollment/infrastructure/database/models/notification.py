# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification model."""

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lms_enrollment.infrastructure.database.models.base import Base, JSONType, UUIDPrimaryKeyMixin
from lms_enrollment.utils.datetime import is_expired, utc_now


class Notification(UUIDPrimaryKeyMixin, Base):
    """Notification shown in the recipient's notification center.

    Attributes:
        recipient_id: User receiving the notification.
        notification_type: Machine-readable type, e.g. enrollment_status.
        title: Short title.
        message: Body text.
        data: Extra payload such as enrollment and course ids.
        sender_id: User whose action produced the notification.
        sender_role: Role of the sender.
        is_read: Whether the recipient has read it.
        expires_at: When the notification stops being shown.
    """

    __tablename__ = "notifications"

    recipient_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    sender_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    sender_role: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_expired(self) -> bool:
        return is_expired(self.expires_at)
