# app/models/order.py
"""
Orders and their line items.

Only the fields the licensing flow depends on are modelled here: the payment
status (whose PENDING -> PAID transition triggers license issuance) and the
purchased quantities.
"""
import uuid
from enum import Enum
from tortoise import fields, models


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class Order(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.ForeignKeyField("models.User", related_name="orders", on_delete=fields.CASCADE)
    status = fields.CharEnumField(OrderStatus, max_length=16, default=OrderStatus.PENDING)
    total = fields.DecimalField(max_digits=12, decimal_places=2, default=0)
    payment_data = fields.JSONField(null=True)  # Gateway reference, payment code, failure reason
    paid_at = fields.DatetimeField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "orders"


class OrderItem(models.Model):
    id = fields.IntField(pk=True)
    order = fields.ForeignKeyField("models.Order", related_name="items", on_delete=fields.CASCADE)
    product = fields.ForeignKeyField("models.Product", related_name="order_items")
    quantity = fields.IntField(default=1)
    price = fields.DecimalField(max_digits=12, decimal_places=2, default=0)

    class Meta:
        table = "order_items"
