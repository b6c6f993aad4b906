"""Notification routes: the recipient's inbox."""

import uuid as uuid_mod

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from gymcoach.core.auth import get_current_user
from gymcoach.dependencies import get_db
from gymcoach.models.user import User
from gymcoach.schemas.notification import NotificationRead
from gymcoach.services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationRead])
async def list_notifications(
    unread_only: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notifications = await notification_service.list_notifications(
        db, current_user.id, unread_only=unread_only
    )
    return [NotificationRead.model_validate(n) for n in notifications]


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        nid = uuid_mod.UUID(notification_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid notification_id")

    notification = await notification_service.mark_read(
        db, recipient_id=current_user.id, notification_id=nid
    )
    return NotificationRead.model_validate(notification)
