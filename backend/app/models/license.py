# app/models/license.py
import uuid
from enum import Enum
from tortoise import fields, models


class LicenseStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    REVOKED = "REVOKED"  # Terminal


class License(models.Model):
    """
    One user's right to use one product.

    - license_key: XXXX-XXXX-XXXX-XXXX, unique, compared case-sensitively
    - status: ACTIVE -> EXPIRED (sweeper or lazy validation), ACTIVE/EXPIRED -> REVOKED (admin)
    - expires_at: null for perpetual licenses; never changed after creation
    - hardware_fingerprint: sha256 of the first machine presented, bound once
    - expiry_warning_sent_at / expiry_urgent_sent_at: claim markers for the
      7-day and 1-day expiry notifications
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    license_key = fields.CharField(max_length=64, unique=True, index=True)

    user = fields.ForeignKeyField("models.User", related_name="licenses", on_delete=fields.CASCADE)
    product = fields.ForeignKeyField("models.Product", related_name="licenses")
    order = fields.ForeignKeyField("models.Order", related_name="licenses", null=True)

    status = fields.CharEnumField(LicenseStatus, max_length=16, default=LicenseStatus.ACTIVE, index=True)
    expires_at = fields.DatetimeField(null=True, index=True)

    requires_hardware_binding = fields.BooleanField(default=False)
    hardware_fingerprint = fields.CharField(max_length=64, null=True)
    hardware_info = fields.JSONField(null=True)

    revoked_at = fields.DatetimeField(null=True)
    revocation_reason = fields.CharField(max_length=512, null=True)

    expiry_warning_sent_at = fields.DatetimeField(null=True)
    expiry_urgent_sent_at = fields.DatetimeField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "licenses"
