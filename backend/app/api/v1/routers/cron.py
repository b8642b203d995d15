# app/api/v1/routers/cron.py
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.v1.deps import require_cron_secret
from app.core.timeutil import utc_now
from app.services.license_sweeper import run_license_sweep

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/cron", tags=["cron"])


@router.api_route(
    "/license-cleanup",
    methods=["GET", "POST"],
    dependencies=[Depends(require_cron_secret)],
)
async def license_cleanup():
    """
    Scheduled license sweep: expire overdue licenses and warn owners of
    upcoming expiries. Triggered by an external scheduler with
    ``Authorization: Bearer <CRON_SECRET>``.
    """
    logger.info("[cron] starting license cleanup job")
    try:
        summary = await run_license_sweep()
    except Exception:
        logger.exception("[cron] license cleanup job failed")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "License cleanup job failed",
                "timestamp": utc_now().isoformat(),
            },
        )

    return {"success": True, "timestamp": utc_now().isoformat(), **summary.to_dict()}
