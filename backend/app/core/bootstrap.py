# app/core/bootstrap.py
"""
Startup tasks: create the first administrator account when none exists.
"""
import os
import logging
from app.models.user import User
from app.core.security import hash_password

logger = logging.getLogger("uvicorn.error")

async def ensure_default_admin() -> None:
    """
    Create a store administrator from the environment if the database has none.

    Does nothing unless ADMIN_PASSWORD is set, so a fresh deployment never
    ends up with a guessable admin login.

    Environment variables:
      ADMIN_USERNAME (default: "admin")
      ADMIN_EMAIL    (default: "admin@example.com")
      ADMIN_NAME     (default: "Store Admin")
      ADMIN_PASSWORD (required)
    """
    if await User.filter(role="admin").exists():
        return

    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("[bootstrap] No admin present and ADMIN_PASSWORD not set; skipping default admin.")
        return

    admin_username = os.getenv("ADMIN_USERNAME", "admin")
    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")

    # A customer may already own the name; pick the next free one
    base_username = admin_username
    suffix = 1
    while await User.filter(username=admin_username).exists():
        suffix += 1
        admin_username = f"{base_username}{suffix}"

    u = await User.create(
        username=admin_username,
        email=admin_email,
        name=os.getenv("ADMIN_NAME", "Store Admin"),
        password_hash=hash_password(admin_password),
        role="admin",
        email_notifications=False,
    )
    logger.warning("[bootstrap] Created default admin: username=%s email=%s id=%s",
                   u.username, u.email, u.id)
