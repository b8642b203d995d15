# app/api/v1/routers/admin.py
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    status,
)
from tortoise.expressions import Q

from app.api.v1.deps import require_admin
from app.core.errors import LicenseKeyCollisionError
from app.core.timeutil import isoformat
from app.models.license import License, LicenseStatus
from app.models.product import Product
from app.models.user import User
from app.schemas.license import (
    AdminCreateLicenseIn,
    AdminLicenseDetailOut,
    AdminLicenseListOut,
    AdminLicenseOut,
    AdminRevokeLicenseIn,
)
from app.services.license_admin import get_license_stats, record_security_event, revoke_license
from app.services.license_issuer import create_license

router = APIRouter(prefix="/admin", tags=["admin"])


def _license_to_dict(lic: License) -> dict:
    """
    Admin view of a license. Shows whether hardware is bound but never the
    fingerprint itself.
    """
    return {
        "id": str(lic.id),
        "licenseKey": lic.license_key,
        "status": lic.status.value,
        "userId": str(lic.user_id),
        "productId": str(lic.product_id),
        "orderId": str(lic.order_id) if lic.order_id else None,
        "expiresAt": isoformat(lic.expires_at),
        "requiresHardwareBinding": lic.requires_hardware_binding,
        "hardwareBound": lic.hardware_fingerprint is not None,
        "revokedAt": isoformat(lic.revoked_at),
        "revocationReason": lic.revocation_reason,
        "createdAt": isoformat(lic.created_at),
    }


# ==============================================================================
# License administration
#     Prefix: /api/v1/admin/licenses
# ==============================================================================
@router.get(
    "/licenses",
    response_model=AdminLicenseListOut,
    dependencies=[Depends(require_admin)],
)
async def list_licenses(
    status_filter: Optional[LicenseStatus] = Query(default=None, alias="status"),
    user_id: Optional[uuid.UUID] = Query(default=None, alias="userId"),
    product_id: Optional[uuid.UUID] = Query(default=None, alias="productId"),
    search: Optional[str] = Query(default=None, description="Key, owner name/email or product name"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=200),
):
    """
    Paginated license list (admin only), newest first.

    Filters combine with AND; ``search`` matches the key, the owner's name or
    email, or the product name (case-insensitive, substring).
    """
    qs = License.all().order_by("-created_at")
    if status_filter:
        qs = qs.filter(status=status_filter)
    if user_id:
        qs = qs.filter(user_id=user_id)
    if product_id:
        qs = qs.filter(product_id=product_id)
    if search:
        qs = qs.filter(
            Q(license_key__icontains=search)
            | Q(user__name__icontains=search)
            | Q(user__email__icontains=search)
            | Q(product__name__icontains=search)
        )

    total = await qs.count()
    rows = await qs.offset(offset).limit(limit)
    items = [_license_to_dict(r) for r in rows]

    return {"items": items, "offset": offset, "limit": limit, "total": total}


@router.get(
    "/licenses/{license_id}",
    response_model=AdminLicenseDetailOut,
    dependencies=[Depends(require_admin)],
)
async def get_license_detail(license_id: uuid.UUID):
    """
    License detail with download statistics (admin only).

    Raises:
        HTTPException (404): LICENSE_NOT_FOUND
    """
    lic = await License.get_or_none(id=license_id)
    if not lic:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="LICENSE_NOT_FOUND")
    return {"license": _license_to_dict(lic), "stats": await get_license_stats(lic.id)}


@router.post(
    "/licenses",
    response_model=AdminLicenseOut,
)
async def create_license_manually(
    body: AdminCreateLicenseIn,
    admin: User = Depends(require_admin),
):
    """
    Issue a license by hand, outside the order flow (admin only).

    Raises:
        HTTPException (404): USER_NOT_FOUND / PRODUCT_NOT_FOUND
        HTTPException (500): KEY_GENERATION_COLLISION
    """
    user = await User.get_or_none(id=body.userId)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="USER_NOT_FOUND")
    product = await Product.get_or_none(id=body.productId)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PRODUCT_NOT_FOUND")

    try:
        lic = await create_license(
            user,
            product,
            expires_at=body.expiresAt,
            requires_hardware_binding=body.hardwareBinding,
        )
    except LicenseKeyCollisionError:
        raise HTTPException(status_code=500, detail="KEY_GENERATION_COLLISION")

    await record_security_event(
        admin,
        "LICENSE_CREATED",
        f"License {lic.license_key} created for user {user.email or user.username} and product {product.name}",
    )
    return _license_to_dict(lic)


@router.post(
    "/licenses/{license_id}/revoke",
    response_model=AdminLicenseOut,
)
async def revoke_license_by_id(
    license_id: uuid.UUID,
    body: AdminRevokeLicenseIn,
    admin: User = Depends(require_admin),
):
    """
    Revoke a license (admin only). Revocation is permanent.

    Raises:
        HTTPException (404): LICENSE_NOT_FOUND
        HTTPException (409): LICENSE_ALREADY_REVOKED
    """
    lic = await License.get_or_none(id=license_id)
    if not lic:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="LICENSE_NOT_FOUND")

    if not await revoke_license(lic.id, body.reason):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "LICENSE_ALREADY_REVOKED", "message": "License is already revoked"},
        )

    await record_security_event(
        admin,
        "LICENSE_REVOKED",
        f"License {lic.license_key} revoked. Reason: {body.reason or 'No reason provided'}",
    )
    await lic.refresh_from_db()
    return _license_to_dict(lic)
