# app/api/v1/deps.py
import hmac
import logging

from fastapi import Depends, Header, HTTPException, Request, status
from app.config import settings
from app.core.security import decode_access_token
from app.models.user import User

logger = logging.getLogger("uvicorn.error")

async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
):
    """
    Resolve the authenticated user from a Bearer token, falling back to the
    HttpOnly ``accessToken`` cookie.

    Raises:
        HTTPException (401): AUTH_REQUIRED / AUTH_INVALID_TOKEN / AUTH_USER_NOT_FOUND
    """
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token:
        token = request.cookies.get("accessToken")

    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_REQUIRED")

    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_INVALID_TOKEN")

    user = await User.get_or_none(id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="AUTH_USER_NOT_FOUND")
    return user

async def require_admin(current: User = Depends(get_current_user)) -> User:
    """
    Like ``get_current_user`` but only lets administrators through.

    Raises:
        HTTPException (403): FORBIDDEN_ADMIN_ONLY
    """
    if getattr(current, "role", "user") != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN_ADMIN_ONLY")
    return current

async def require_cron_secret(authorization: str | None = Header(default=None)) -> None:
    """
    Gate for the scheduled jobs: ``Authorization: Bearer <CRON_SECRET>``.

    Rejects with 401 when the header is missing or wrong, and also when no
    secret is configured, so an unset environment never opens the endpoint.
    """
    secret = settings.cron_secret
    expected = f"Bearer {secret}"
    if not secret or not authorization or not hmac.compare_digest(
        authorization.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("[cron] rejected unauthorized trigger")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

def client_ip(request: Request) -> str:
    """Best-effort client address behind a proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"
