"""
Notification endpoints for API v1.

Users read and clear their own notifications.  Administrators may send
a notification to any user.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status

from booking_marketplace_api.app.core.db import ROLE_ADMIN
from booking_marketplace_api.app.core.security import get_current_user, require_roles
from booking_marketplace_api.app.schemas.notification import NotificationCreate, NotificationRead, UnreadCount
from booking_marketplace_api.app.services.notification_service import NotificationService

router = APIRouter()


@router.get("/", response_model=List[NotificationRead])
async def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
) -> List[NotificationRead]:
    return await NotificationService.get_user_notifications(current_user["user_id"], limit)


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(current_user: dict = Depends(get_current_user)) -> UnreadCount:
    return UnreadCount(count=await NotificationService.get_unread_count(current_user["user_id"]))


@router.post("/read-all", response_model=UnreadCount)
async def mark_all_read(current_user: dict = Depends(get_current_user)) -> UnreadCount:
    """Mark all notifications as read; returns how many were updated."""
    return UnreadCount(count=await NotificationService.mark_all_as_read(current_user["user_id"]))


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(notification_id: int, current_user: dict = Depends(get_current_user)) -> NotificationRead:
    return await NotificationService.mark_as_read(notification_id, current_user["user_id"])


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: int, current_user: dict = Depends(get_current_user)) -> None:
    await NotificationService.delete_notification(notification_id, current_user["user_id"])


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def send_notification(
    data: NotificationCreate, current_user: dict = Depends(require_roles(ROLE_ADMIN))
) -> NotificationRead:
    return await NotificationService.create_notification(
        data.user_id, data.title, data.message, data.type, data.data, data.action_url, data.expires_at
    )
