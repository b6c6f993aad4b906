"""Notification emitter: append-only user notifications.

Notifications are written through the caller's session, so they commit or
roll back together with the state transition that produced them.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.errors import NotFound
from gymcoach.models.notification import Notification, NotificationType

logger = logging.getLogger("gymcoach.services.notifications")


async def emit(
    db: AsyncSession,
    *,
    recipient_id: uuid.UUID,
    type: NotificationType,
    title: str,
    message: str,
    origin_user_id: uuid.UUID | None = None,
) -> Notification:
    """Append a notification for `recipient_id`."""
    notification = Notification(
        recipient_id=recipient_id,
        type=type,
        title=title,
        message=message,
        origin_user_id=origin_user_id,
        read=False,
    )
    db.add(notification)
    await db.flush()
    logger.info("Notification %s queued for user %s", type.value, recipient_id)
    return notification


async def list_notifications(
    db: AsyncSession,
    recipient_id: uuid.UUID,
    *,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[Notification]:
    """Newest first."""
    stmt = select(Notification).where(Notification.recipient_id == recipient_id)
    if unread_only:
        stmt = stmt.where(Notification.read == False)  # noqa: E712
    stmt = stmt.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def mark_read(
    db: AsyncSession,
    *,
    recipient_id: uuid.UUID,
    notification_id: uuid.UUID,
) -> Notification:
    """Set the read flag. Only the recipient may do this."""
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.recipient_id == recipient_id,
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFound("Notification not found")
    notification.read = True
    await db.flush()
    return notification
