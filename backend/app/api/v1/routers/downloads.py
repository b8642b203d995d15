# app/api/v1/routers/downloads.py
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse

from app.api.v1.deps import client_ip, get_current_user
from app.core.security import create_download_token, verify_download_token
from app.core.timeutil import as_utc, isoformat, utc_now
from app.models.download import Download
from app.models.license import License, LicenseStatus
from app.models.user import User
from app.services.license_validator import expire_if_active

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/downloads", tags=["downloads"])


async def _downloadable_license(license_id, user_id) -> License:
    """
    Load a license the user may download right now.

    Raises:
        HTTPException (404): LICENSE_NOT_FOUND (also for someone else's license)
        HTTPException (403): LICENSE_NOT_ACTIVE / LICENSE_EXPIRED / PRODUCT_UNAVAILABLE
    """
    lic = await License.get_or_none(id=license_id, user_id=user_id).prefetch_related("product")
    if not lic:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="LICENSE_NOT_FOUND")

    if lic.status != LicenseStatus.ACTIVE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="LICENSE_NOT_ACTIVE")

    if lic.expires_at and as_utc(lic.expires_at) < utc_now():
        await expire_if_active(lic.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="LICENSE_EXPIRED")

    if not lic.product.is_active or not lic.product.download_url:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="PRODUCT_UNAVAILABLE")

    return lic


@router.get("/redeem")
async def redeem_download_token(token: str = Query(..., min_length=1)):
    """
    Exchange a signed download token for a redirect to the product file.
    The license is re-checked, so revoking it invalidates outstanding tokens.

    Raises:
        HTTPException (401): DOWNLOAD_TOKEN_INVALID
    """
    claims = verify_download_token(token)
    if not claims:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="DOWNLOAD_TOKEN_INVALID")

    lic = await _downloadable_license(claims["licenseId"], claims["userId"])
    return RedirectResponse(url=lic.product.download_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/{license_id}")
async def authorize_download(
    license_id: uuid.UUID,
    request: Request,
    user: User = Depends(get_current_user),
):
    """
    Authorize a download of a licensed product for its owner.

    Records the download (client IP and user agent) and returns the product
    URL with a signed token valid for a limited time.
    """
    lic = await _downloadable_license(license_id, user.id)

    await Download.create(
        license_id=lic.id,
        user_id=user.id,
        product_id=lic.product_id,
        ip_address=client_ip(request),
        user_agent=(request.headers.get("user-agent") or "unknown")[:512],
    )
    logger.info("[download] license %s downloaded by user %s", lic.id, user.id)

    return {
        "success": True,
        "data": {
            "downloadUrl": lic.product.download_url,
            "downloadToken": create_download_token(str(lic.id), str(user.id)),
            "productName": lic.product.name,
            "version": lic.product.version,
            "expiresAt": isoformat(lic.expires_at),
        },
    }
