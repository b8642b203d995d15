# app/models/notification.py
import uuid
from enum import Enum
from tortoise import fields, models


class NotificationType(str, Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    ORDER_UPDATE = "ORDER_UPDATE"
    PAYMENT_SUCCESS = "PAYMENT_SUCCESS"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    LICENSE_EXPIRY = "LICENSE_EXPIRY"


class Notification(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField("models.User", related_name="notifications", on_delete=fields.CASCADE)
    title = fields.CharField(max_length=200)
    message = fields.TextField()
    type = fields.CharEnumField(NotificationType, max_length=32, default=NotificationType.INFO)
    data = fields.JSONField(null=True)
    is_read = fields.BooleanField(default=False)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "notifications"
