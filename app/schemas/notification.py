from uuid import UUID
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_serializer

from app.enums.notification_type import NotificationType


class NotificationResponse(BaseModel):
    """Schema for notification response"""
    id: UUID
    notification_type: NotificationType
    sender_id: Optional[UUID]
    title: str
    message: str
    data: dict
    is_read: bool
    read_at: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("id", "sender_id")
    def serialize_id(self, v: Optional[UUID], _info):
        return str(v) if v else None


class NotificationListResponse(BaseModel):
    """Schema for paginated notification list"""
    total: int
    unread_count: int
    page: int
    page_size: int
    notifications: list[NotificationResponse]


class UnreadCountResponse(BaseModel):
    unread_count: int
