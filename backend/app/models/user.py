# app/models/user.py
"""
Database model for store customers and administrators.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    Store account.

    Relationships:
    - Has many Licenses (related_name="licenses")
    - Has many Orders (related_name="orders")
    - Has many Notifications (related_name="notifications")

    Role is "user" for customers and "admin" for back-office staff.
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    username = fields.CharField(max_length=256, unique=True, index=True)
    email = fields.CharField(max_length=256, null=True)
    name = fields.CharField(max_length=256, null=True)  # Display name used in emails and validation summaries
    password_hash = fields.CharField(max_length=255)  # Argon2 hash
    role = fields.CharField(max_length=16, default="user")
    email_notifications = fields.BooleanField(default=True)  # Opt-in for notification emails
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "users"
