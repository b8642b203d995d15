"""
Back-office operations on licenses: revocation, usage stats and the audit trail.
"""
import logging
from typing import Any, Optional

from app.core.timeutil import utc_now
from app.models.download import Download
from app.models.license import License, LicenseStatus
from app.models.security_log import SecurityLog
from app.models.user import User

logger = logging.getLogger("uvicorn.error")


async def revoke_license(license_id: Any, reason: Optional[str] = None) -> bool:
    """
    ACTIVE/EXPIRED -> REVOKED. Revocation is terminal, so a second call
    changes nothing and returns False.
    """
    updated = await License.filter(
        id=license_id,
        status__in=[LicenseStatus.ACTIVE, LicenseStatus.EXPIRED],
    ).update(
        status=LicenseStatus.REVOKED,
        revoked_at=utc_now(),
        revocation_reason=reason,
    )
    if updated:
        logger.info("[license] %s revoked (%s)", license_id, reason or "no reason")
    return bool(updated)


async def get_license_stats(license_id: Any) -> dict:
    """Download count and most recent download for one license."""
    qs = Download.filter(license_id=license_id)
    count = await qs.count()
    last = await qs.order_by("-downloaded_at").first()
    return {
        "downloadCount": count,
        "lastDownload": (
            {"date": last.downloaded_at.isoformat(), "ipAddress": last.ip_address}
            if last
            else None
        ),
    }


async def record_security_event(admin: Optional[User], action: str, details: str) -> None:
    await SecurityLog.create(user=admin, action=action, details=details)
