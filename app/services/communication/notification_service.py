from uuid import UUID
from typing import Optional
from loguru import logger

from app.core.exceptions import NotFoundError
from app.core.money import utcnow
from app.enums.notification_type import NotificationType
from app.models.notification import Notification


class NotificationService:
    @staticmethod
    async def create_notification(
        recipient_id: UUID,
        notification_type: NotificationType,
        title: str,
        message: str,
        data: Optional[dict] = None,
        sender_id: Optional[UUID] = None
    ) -> Optional[Notification]:
        """Create a new notification. Failures are logged, never raised."""
        try:
            notification = await Notification.create(
                recipient_id=recipient_id,
                sender_id=sender_id,
                notification_type=notification_type,
                title=title[:100],
                message=message[:500],
                data=data or {}
            )
        except Exception as e:
            # A lost notification must not undo the operation that triggered it
            logger.error(f"Error creating {notification_type.value} notification for {recipient_id}: {e}")
            return None

        logger.debug(f"Notification {notification.id} ({notification_type.value}) sent to {recipient_id}")
        return notification

    @staticmethod
    async def get_user_notifications(
        user_id: UUID,
        page: int = 1,
        page_size: int = 20,
        unread_only: bool = False
    ) -> tuple[list[Notification], int, int]:
        """Get user notifications with pagination"""
        query = Notification.filter(recipient_id=user_id)

        if unread_only:
            query = query.filter(is_read=False)

        total = await query.count()
        unread_count = await Notification.filter(recipient_id=user_id, is_read=False).count()

        notifications = await query.order_by("-created_at").offset((page - 1) * page_size).limit(page_size)

        return notifications, total, unread_count

    @staticmethod
    async def get_unread_count(user_id: UUID) -> int:
        return await Notification.filter(recipient_id=user_id, is_read=False).count()

    @staticmethod
    async def mark_as_read(notification_id: UUID, user_id: UUID) -> Notification:
        """Mark a notification as read"""
        notification = await Notification.get_or_none(id=notification_id, recipient_id=user_id)
        if not notification:
            raise NotFoundError("Notification not found")

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utcnow()
            await notification.save(update_fields=["is_read", "read_at"])

        return notification

    @staticmethod
    async def mark_all_as_read(user_id: UUID) -> int:
        """Mark all notifications as read for a user"""
        count = await Notification.filter(recipient_id=user_id, is_read=False).update(
            is_read=True,
            read_at=utcnow()
        )
        return count

    @staticmethod
    async def delete_notification(notification_id: UUID, user_id: UUID):
        """Delete a notification"""
        deleted = await Notification.filter(id=notification_id, recipient_id=user_id).delete()
        if not deleted:
            raise NotFoundError("Notification not found")
