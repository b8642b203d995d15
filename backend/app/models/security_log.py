# app/models/security_log.py
from tortoise import fields, models

class SecurityLog(models.Model):
    """Audit trail for admin actions on licenses."""
    id = fields.IntField(pk=True)
    user = fields.ForeignKeyField("models.User", related_name="security_logs", null=True)  # Acting admin
    action = fields.CharField(max_length=64)  # LICENSE_CREATED / LICENSE_REVOKED
    details = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "security_logs"
