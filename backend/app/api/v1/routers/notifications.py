# app/api/v1/routers/notifications.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.v1.deps import get_current_user
from app.core.timeutil import isoformat
from app.models.notification import Notification
from app.models.user import User
from app.schemas.notification import NotificationListOut
from app.services.notifications import mark_all_as_read, mark_as_read

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListOut)
async def list_notifications(
    user: User = Depends(get_current_user),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    unreadOnly: bool = Query(False),
):
    """Current user's notifications, newest first."""
    qs = Notification.filter(user_id=user.id).order_by("-created_at")
    if unreadOnly:
        qs = qs.filter(is_read=False)

    total = await qs.count()
    unread = await Notification.filter(user_id=user.id, is_read=False).count()
    rows = await qs.offset(offset).limit(limit)
    items = [
        {
            "id": str(n.id),
            "title": n.title,
            "message": n.message,
            "type": n.type.value,
            "data": n.data,
            "isRead": n.is_read,
            "createdAt": isoformat(n.created_at),
        }
        for n in rows
    ]
    return {"items": items, "offset": offset, "limit": limit, "total": total, "unreadCount": unread}


@router.post("/read-all")
async def read_all_notifications(user: User = Depends(get_current_user)):
    updated = await mark_all_as_read(user.id)
    return {"success": True, "data": {"updated": updated}}


@router.post("/{notification_id}/read")
async def read_notification(notification_id: uuid.UUID, user: User = Depends(get_current_user)):
    """
    Raises:
        HTTPException (404): NOTIFICATION_NOT_FOUND
    """
    if not await mark_as_read(notification_id, user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="NOTIFICATION_NOT_FOUND")
    return {"success": True}
