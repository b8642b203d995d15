"""
In-app notifications with optional email delivery.

``create_notification`` is best-effort: failures are logged and reported as
False so a batch caller (the sweeper, the payment callback) can carry on.
"""
import datetime as dt
import logging
from typing import Any, List, Optional

from tortoise.exceptions import BaseORMException

from app.models.notification import Notification, NotificationType
from app.models.user import User
from app.services.mailer import send_email

logger = logging.getLogger("uvicorn.error")


async def create_notification(
    user_id: Any,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
    data: Optional[dict] = None,
    send_email_copy: bool = False,
    email_body: Optional[str] = None,
) -> bool:
    """
    Store a notification for ``user_id`` and, if requested and the user opted
    in, email the same text (or ``email_body`` when the email carries more).

    Returns:
        True when the notification row was stored. Email failures are logged
        but do not turn a stored notification into a failure.
    """
    try:
        await Notification.create(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            data=data or {},
            is_read=False,
        )
    except BaseORMException:
        logger.exception("[notify] could not store notification for user %s", user_id)
        return False

    if send_email_copy:
        user = await User.get_or_none(id=user_id)
        if user and user.email and user.email_notifications:
            try:
                await send_email(
                    user.email, title, f"Hi {user.name or user.username},\n\n{email_body or message}\n"
                )
            except Exception:
                logger.exception("[notify] email delivery failed for user %s", user_id)
    return True


# ---------- Predefined notifications ----------
async def notify_license_expiring(user_id: Any, license_id: Any, product_name: str, expires_at: dt.datetime) -> bool:
    return await create_notification(
        user_id,
        title="License Expiring Soon",
        message=f"Your license for {product_name} will expire on {expires_at:%Y-%m-%d}.",
        type=NotificationType.LICENSE_EXPIRY,
        data={"licenseId": str(license_id), "productName": product_name, "expiryDate": expires_at.isoformat()},
        send_email_copy=True,
    )


async def notify_license_expiring_urgent(user_id: Any, license_id: Any, product_name: str, expires_at: dt.datetime) -> bool:
    return await create_notification(
        user_id,
        title="License Expiring Tomorrow!",
        message=(
            f"Your license for {product_name} will expire tomorrow. "
            "Please renew to continue using the product."
        ),
        type=NotificationType.WARNING,
        data={"licenseId": str(license_id), "productName": product_name, "expiryDate": expires_at.isoformat()},
        send_email_copy=True,
    )


async def notify_payment_success(user_id: Any, order_id: Any, license_keys: List[str]) -> bool:
    """
    Order confirmation. The in-app notification only counts the licenses;
    the email copy lists the keys themselves.
    """
    short_id = str(order_id)[-8:]
    message = f"Payment for order #{short_id} has been processed. {len(license_keys)} license(s) issued."
    key_lines = "\n".join(f"  {key}" for key in license_keys)
    return await create_notification(
        user_id,
        title="Payment Successful",
        message=message,
        type=NotificationType.PAYMENT_SUCCESS,
        data={"orderId": str(order_id), "licenseCount": len(license_keys)},
        send_email_copy=True,
        email_body=f"{message}\n\nYour license keys:\n{key_lines}\n\nKeep them safe; each key unlocks one copy.",
    )


async def notify_payment_failed(user_id: Any, order_id: Any, reason: Optional[str] = None) -> bool:
    short_id = str(order_id)[-8:]
    return await create_notification(
        user_id,
        title="Payment Failed",
        message=f"Payment for order #{short_id} has failed. {reason or 'Please try again.'}",
        type=NotificationType.PAYMENT_FAILED,
        data={"orderId": str(order_id), "reason": reason},
        send_email_copy=True,
    )


# ---------- Reading ----------
async def mark_as_read(notification_id: Any, user_id: Any) -> bool:
    """Mark one of the user's notifications read; False if it is not theirs."""
    updated = await Notification.filter(id=notification_id, user_id=user_id).update(is_read=True)
    return bool(updated)


async def mark_all_as_read(user_id: Any) -> int:
    return await Notification.filter(user_id=user_id, is_read=False).update(is_read=True)
