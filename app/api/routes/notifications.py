from fastapi import APIRouter, Depends, Query
from uuid import UUID

from app.models.user import User
from app.api.dependencies import get_current_active_user
from app.schemas.notification import (
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse
)
from app.services.communication.notification_service import NotificationService

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def get_my_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False),
    current_user: User = Depends(get_current_active_user)
):
    """Get current user's notifications"""
    notifications, total, unread_count = await NotificationService.get_user_notifications(
        user_id=current_user.id,
        page=page,
        page_size=page_size,
        unread_only=unread_only
    )

    return NotificationListResponse(
        total=total,
        unread_count=unread_count,
        page=page,
        page_size=page_size,
        notifications=notifications
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(current_user: User = Depends(get_current_active_user)):
    return UnreadCountResponse(unread_count=await NotificationService.get_unread_count(current_user.id))


@router.put("/read-all")
async def mark_all_notifications_read(current_user: User = Depends(get_current_active_user)):
    """Mark all notifications as read"""
    count = await NotificationService.mark_all_as_read(current_user.id)
    return {"message": f"Marked {count} notifications as read"}


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_active_user)
):
    """Mark a notification as read"""
    return await NotificationService.mark_as_read(notification_id, current_user.id)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: UUID,
    current_user: User = Depends(get_current_active_user)
):
    """Delete a notification"""
    await NotificationService.delete_notification(notification_id, current_user.id)
    return {"message": "Notification deleted"}
