# app/api/v1/routers/license.py
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.v1.deps import get_current_user
from app.core.timeutil import as_utc, isoformat, utc_now
from app.models.license import License, LicenseStatus
from app.models.user import User
from app.schemas.license import (
    SimpleValidateOut,
    UserLicenseOut,
    ValidateLicenseIn,
    ValidateLicenseOut,
)
from app.services.license_validator import validate_license

router = APIRouter(prefix="/license", tags=["license"])


@router.post("/validate", response_model=ValidateLicenseOut)
async def validate_license_full(body: ValidateLicenseIn, response: Response):
    """
    Full license check used by client applications.

    Verifies the key, its expiry, the expected product and, when hardware
    info is sent, the machine binding. The first machine presented to a
    hardware-bound license becomes its permanent binding.

    Returns:
        200 with ``valid: true`` and a license summary, or
        400 with ``valid: false`` plus ``reason`` (code) and ``error`` (text).
    """
    hardware = body.hardwareInfo.model_dump(exclude_none=True) if body.hardwareInfo else None
    result = await validate_license(body.licenseKey, body.productId, hardware)

    if result.valid:
        return {"valid": True, "license": result.license, "message": "License is valid"}

    response.status_code = status.HTTP_400_BAD_REQUEST
    return {
        "valid": False,
        "reason": result.reason.value,
        "error": result.error,
        "message": "License validation failed",
    }


@router.get("/validate", response_model=SimpleValidateOut)
async def validate_license_simple(
    key: Optional[str] = Query(default=None, description="License key"),
    productId: Optional[str] = Query(default=None),
):
    """
    Lightweight key check. Never binds hardware and never echoes the key
    or the owner's id back; only product name, owner name, expiry and status.
    """
    if not key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="License key is required")

    result = await validate_license(key, productId)
    if not result.valid:
        return {"valid": False, "reason": result.reason.value, "error": result.error, "license": None}

    summary = result.license
    return {
        "valid": True,
        "license": {
            "productName": summary["product"]["name"],
            "userName": summary["user"]["name"],
            "expiresAt": summary["expiresAt"],
            "status": summary["status"],
        },
    }


@router.get("/mine", response_model=List[UserLicenseOut])
async def list_my_licenses(
    user: User = Depends(get_current_user),
    status_filter: Optional[LicenseStatus] = Query(default=None, alias="status"),
    productId: Optional[uuid.UUID] = Query(default=None),
):
    """Licenses owned by the authenticated user, newest first."""
    qs = License.filter(user_id=user.id).order_by("-created_at").prefetch_related("product")
    if status_filter:
        qs = qs.filter(status=status_filter)
    if productId:
        qs = qs.filter(product_id=productId)

    now = utc_now()
    rows = await qs
    return [
        {
            "id": str(lic.id),
            "licenseKey": lic.license_key,
            "status": lic.status.value,
            "createdAt": isoformat(lic.created_at),
            "expiresAt": isoformat(lic.expires_at),
            "isExpired": bool(lic.expires_at and as_utc(lic.expires_at) < now),
            "product": {
                "id": str(lic.product.id),
                "name": lic.product.name,
                "version": lic.product.version,
                "downloadUrl": lic.product.download_url,
            },
        }
        for lic in rows
    ]
