# app/schemas/notification.py
from typing import List, Optional

from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: str
    title: str
    message: str
    type: str
    data: Optional[dict] = None
    isRead: bool
    createdAt: Optional[str] = None


class NotificationListOut(BaseModel):
    items: List[NotificationOut]
    offset: int
    limit: int
    total: int
    unreadCount: int
