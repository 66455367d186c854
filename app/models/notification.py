import uuid
from tortoise import fields, models

from app.enums.notification_type import NotificationType


class Notification(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    recipient = fields.ForeignKeyField("models.User", related_name="notifications")
    sender = fields.ForeignKeyField("models.User", related_name="sent_notifications", null=True)

    # Notification content
    notification_type = fields.CharEnumField(NotificationType)
    title = fields.CharField(max_length=100)
    message = fields.CharField(max_length=500)
    # productId, bidId, transactionId, amount, url
    data = fields.JSONField(default=dict)

    is_read = fields.BooleanField(default=False)
    read_at = fields.DatetimeField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "notifications"
        ordering = ["-created_at"]
        indexes = (("recipient_id", "is_read"),)

    def __str__(self):
        return f"Notification {self.id} - {self.title}"
