# app/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- User: Store account (customer or admin)
- Product: Catalog entry with license duration and binding policy
- Order / OrderItem: Purchases whose payment triggers license issuance
- License: Issued license keys
- Download: Download audit log
- Notification: In-app notifications
- SecurityLog: Admin action audit
"""
from .user import User
from .product import Product
from .order import Order, OrderItem, OrderStatus
from .license import License, LicenseStatus
from .download import Download
from .notification import Notification, NotificationType
from .security_log import SecurityLog
