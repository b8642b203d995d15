# app/models/download.py
import uuid
from tortoise import fields, models

class Download(models.Model):
    """Append-only audit row written for every authorized download."""
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    license = fields.ForeignKeyField("models.License", related_name="downloads", on_delete=fields.CASCADE)
    user = fields.ForeignKeyField("models.User", related_name="downloads", on_delete=fields.CASCADE)
    product = fields.ForeignKeyField("models.Product", related_name="downloads")
    ip_address = fields.CharField(max_length=64, default="unknown")
    user_agent = fields.CharField(max_length=512, default="unknown")
    downloaded_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "downloads"
