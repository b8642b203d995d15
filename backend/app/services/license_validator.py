"""
License validation.

``validate_license`` answers "is this key usable right now, for this product,
on this machine?". Every negative outcome is returned as a result carrying a
reason code; nothing is raised for business failures.

All writes made here are single-row conditional updates:

- lazy expiry: ``status = EXPIRED where id = ? and status = ACTIVE``
- hardware binding: ``hardware_fingerprint = ? where id = ? and hardware_fingerprint is null``

so concurrent validators (or the sweeper) racing on the same row never
overwrite each other; the losing writer's update simply touches no row.
"""
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from app.core.timeutil import as_utc, utc_now
from app.models.license import License, LicenseStatus
from app.services.license_keys import hardware_fingerprint

logger = logging.getLogger("uvicorn.error")


class ValidationReason(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"
    WRONG_PRODUCT = "WRONG_PRODUCT"
    PRODUCT_UNAVAILABLE = "PRODUCT_UNAVAILABLE"
    HARDWARE_MISMATCH = "HARDWARE_MISMATCH"
    VALIDATION_FAILED = "VALIDATION_FAILED"


REASON_MESSAGES = {
    ValidationReason.NOT_FOUND: "License key not found",
    ValidationReason.REVOKED: "License is revoked",
    ValidationReason.EXPIRED: "License has expired",
    ValidationReason.WRONG_PRODUCT: "License is not valid for this product",
    ValidationReason.PRODUCT_UNAVAILABLE: "Product is no longer available",
    ValidationReason.HARDWARE_MISMATCH: "License is bound to different hardware",
    ValidationReason.VALIDATION_FAILED: "License validation failed",
}


@dataclass
class LicenseValidationResult:
    valid: bool
    reason: Optional[ValidationReason] = None
    license: Optional[dict] = None  # Summary, only on success

    @property
    def error(self) -> Optional[str]:
        """Human-readable reason, None for a valid license."""
        return REASON_MESSAGES[self.reason] if self.reason else None

    @classmethod
    def fail(cls, reason: ValidationReason) -> "LicenseValidationResult":
        return cls(valid=False, reason=reason)


def license_summary(lic: License) -> dict:
    """
    Public view of a validated license with its product and owner.
    Never includes the hardware fingerprint or account credentials.
    """
    return {
        "id": str(lic.id),
        "licenseKey": lic.license_key,
        "status": lic.status.value,
        "productId": str(lic.product_id),
        "expiresAt": lic.expires_at.isoformat() if lic.expires_at else None,
        "product": {
            "name": lic.product.name,
            "version": lic.product.version or "1.0.0",
        },
        "user": {
            "name": lic.user.name or "",
            "email": lic.user.email,
        },
    }


def _same_product(license_product_id: Any, product_id: Any) -> bool:
    """Compare ids as UUIDs, so case and hyphenation do not matter; garbage never matches."""
    try:
        return uuid.UUID(str(product_id)) == uuid.UUID(str(license_product_id))
    except ValueError:
        return False


async def expire_if_active(license_id: Any) -> bool:
    """Flip one license ACTIVE -> EXPIRED; False if another writer got there first."""
    updated = await License.filter(id=license_id, status=LicenseStatus.ACTIVE).update(
        status=LicenseStatus.EXPIRED
    )
    return bool(updated)


async def bind_hardware(lic: License, fingerprint: str, hardware_info: Mapping[str, Any]) -> bool:
    """
    Pin the license to ``fingerprint`` unless a fingerprint is already bound.

    Returns True when the license ends up bound to ``fingerprint`` (either by
    this call or by an earlier one with the same machine).
    """
    updated = await License.filter(id=lic.id, hardware_fingerprint__isnull=True).update(
        hardware_fingerprint=fingerprint,
        hardware_info=dict(hardware_info),
    )
    if updated:
        lic.hardware_fingerprint = fingerprint
        lic.hardware_info = dict(hardware_info)
        logger.info("[license] %s bound to hardware", lic.id)
        return True

    # Someone bound it first: the stored value decides
    bound = await License.filter(id=lic.id).values_list("hardware_fingerprint", flat=True)
    lic.hardware_fingerprint = bound[0] if bound else None
    return lic.hardware_fingerprint == fingerprint


async def validate_license(
    license_key: str,
    product_id: Optional[str] = None,
    hardware_info: Optional[Mapping[str, Any]] = None,
) -> LicenseValidationResult:
    """
    Validate a license key.

    Checks, in order: existence, revocation, expiry (lazily persisting
    ACTIVE -> EXPIRED), product match, product availability, hardware binding.

    Hardware is only checked when a fingerprint is presented. A license that
    requires binding and has none yet is bound to the first fingerprint seen.

    Args:
        license_key: Exact, case-sensitive key
        product_id: Optional product the caller expects the key to unlock
        hardware_info: Optional machine components (cpuId, motherboardId, diskId,
            macAddress, systemUuid)
    """
    try:
        lic = await License.get_or_none(license_key=license_key).prefetch_related("product", "user")
        if lic is None:
            return LicenseValidationResult.fail(ValidationReason.NOT_FOUND)

        if lic.status == LicenseStatus.REVOKED:
            return LicenseValidationResult.fail(ValidationReason.REVOKED)

        if lic.status == LicenseStatus.EXPIRED:
            return LicenseValidationResult.fail(ValidationReason.EXPIRED)

        expires_at = as_utc(lic.expires_at)
        if expires_at is not None and expires_at < utc_now():
            if await expire_if_active(lic.id):
                logger.info("[license] %s expired on validation", lic.id)
            return LicenseValidationResult.fail(ValidationReason.EXPIRED)

        if product_id and not _same_product(lic.product_id, product_id):
            return LicenseValidationResult.fail(ValidationReason.WRONG_PRODUCT)

        if not lic.product.is_active:
            return LicenseValidationResult.fail(ValidationReason.PRODUCT_UNAVAILABLE)

        fingerprint = hardware_fingerprint(hardware_info)
        if fingerprint is not None:
            if lic.hardware_fingerprint is None and lic.requires_hardware_binding:
                if not await bind_hardware(lic, fingerprint, hardware_info):
                    return LicenseValidationResult.fail(ValidationReason.HARDWARE_MISMATCH)
            elif lic.hardware_fingerprint is not None and lic.hardware_fingerprint != fingerprint:
                return LicenseValidationResult.fail(ValidationReason.HARDWARE_MISMATCH)

        return LicenseValidationResult(valid=True, license=license_summary(lic))

    except Exception:
        logger.exception("[license] validation error")
        return LicenseValidationResult.fail(ValidationReason.VALIDATION_FAILED)
