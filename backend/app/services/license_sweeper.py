"""
License lifecycle sweep, run on an external schedule (see the cron router).

Phases, with no transaction spanning them:

1. expire every ACTIVE license whose expiry has passed (bulk conditional update)
2. warn owners of licenses expiring within ``expiry_warning_days``
3. warn owners of licenses expiring within ``expiry_urgent_days`` (urgent)

Each warning is claimed by stamping ``expiry_warning_sent_at`` /
``expiry_urgent_sent_at`` only if still null, so re-running the sweep early
(or two overlapping sweeps) does not send the same warning twice. A failed
send releases its claim and is retried on the next run.
"""
import datetime as dt
import logging
from dataclasses import asdict, dataclass
from typing import Awaitable, Callable, List, Optional

from app.config import settings
from app.core.timeutil import as_utc, utc_now
from app.models.license import License, LicenseStatus
from app.services.notifications import notify_license_expiring, notify_license_expiring_urgent

logger = logging.getLogger("uvicorn.error")


@dataclass
class SweepSummary:
    expiredLicensesMarked: int = 0
    expiringIn7Days: int = 0
    expiringIn1Day: int = 0
    notificationsSent: int = 0
    urgentNotificationsSent: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


async def expire_overdue_licenses(now: Optional[dt.datetime] = None) -> int:
    """ACTIVE -> EXPIRED for every license past its expiry; returns rows changed."""
    now = now or utc_now()
    count = await License.filter(status=LicenseStatus.ACTIVE, expires_at__lt=now).update(
        status=LicenseStatus.EXPIRED
    )
    logger.info("[sweeper] marked %d licenses as expired", count)
    return count


async def get_expiring_licenses(days: int, now: Optional[dt.datetime] = None) -> List[License]:
    """ACTIVE licenses expiring between now and now + days (inclusive)."""
    now = now or utc_now()
    return await License.filter(
        status=LicenseStatus.ACTIVE,
        expires_at__gte=now,
        expires_at__lte=now + dt.timedelta(days=days),
    ).prefetch_related("product")


async def _send_once(
    lic: License,
    marker: str,
    now: dt.datetime,
    send: Callable[..., Awaitable[bool]],
) -> bool:
    claimed = await License.filter(id=lic.id, **{f"{marker}__isnull": True}).update(**{marker: now})
    if not claimed:
        return False

    try:
        sent = await send(lic.user_id, lic.id, lic.product.name, as_utc(lic.expires_at))
    except Exception:
        logger.exception("[sweeper] %s notification failed for license %s", marker, lic.id)
        sent = False
    if not sent:
        await License.filter(id=lic.id).update(**{marker: None})
    return sent


async def run_license_sweep(now: Optional[dt.datetime] = None) -> SweepSummary:
    """Run all sweep phases once and summarize what changed."""
    now = now or utc_now()
    summary = SweepSummary()

    summary.expiredLicensesMarked = await expire_overdue_licenses(now)

    expiring = await get_expiring_licenses(settings.expiry_warning_days, now)
    summary.expiringIn7Days = len(expiring)
    for lic in expiring:
        if await _send_once(lic, "expiry_warning_sent_at", now, notify_license_expiring):
            summary.notificationsSent += 1

    urgent = await get_expiring_licenses(settings.expiry_urgent_days, now)
    summary.expiringIn1Day = len(urgent)
    for lic in urgent:
        if await _send_once(lic, "expiry_urgent_sent_at", now, notify_license_expiring_urgent):
            summary.urgentNotificationsSent += 1

    logger.info("[sweeper] completed: %s", summary.to_dict())
    return summary
