# app/models/product.py
import uuid
from tortoise import fields, models

class Product(models.Model):
    """
    Catalog entry for a sellable game tool.

    - duration_days: license lifetime; null means perpetual licenses
    - requires_hardware_binding: copied onto every license issued for this product
    - is_active: deactivated products no longer validate or download
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=200)
    slug = fields.CharField(max_length=200, unique=True, index=True)
    version = fields.CharField(max_length=32, null=True)
    price = fields.DecimalField(max_digits=12, decimal_places=2, default=0)
    duration_days = fields.IntField(null=True)
    requires_hardware_binding = fields.BooleanField(default=False)
    download_url = fields.CharField(max_length=1024, null=True)
    is_active = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "products"
