# app/api/v1/routers/payment.py
import logging
import uuid

from fastapi import APIRouter, HTTPException, status

from app.config import settings
from app.core.errors import LicenseIssuanceError, OrderNotFoundError
from app.models.order import Order
from app.schemas.payment import PaymentCallbackIn
from app.services.license_issuer import issue_licenses_for_order, mark_order_failed
from app.services.notifications import notify_payment_failed, notify_payment_success
from app.services.payment import verify_callback_signature

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/payment", tags=["payment"])


@router.post("/callback")
async def payment_callback(body: PaymentCallbackIn):
    """
    Payment gateway callback.

    A verified success moves the order (PENDING or FAILED) -> PAID and issues its
    licenses in one step; repeated deliveries of the same callback are
    acknowledged without issuing again. Any other result code fails the order.

    Raises:
        HTTPException (400): INVALID_SIGNATURE
        HTTPException (404): ORDER_NOT_FOUND
        HTTPException (500): LICENSE_ISSUANCE_FAILED (order left pending for retry)
    """
    amount = str(body.amount)
    if not verify_callback_signature(body.merchantCode, amount, body.merchantOrderId, body.signature):
        logger.warning("[payment] invalid callback signature for order %s", body.merchantOrderId)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="INVALID_SIGNATURE")

    try:
        order_id = uuid.UUID(body.merchantOrderId)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="ORDER_NOT_FOUND")
    order = await Order.get_or_none(id=order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="ORDER_NOT_FOUND")

    meta = {
        "reference": body.reference,
        "paymentCode": body.paymentCode,
        "resultCode": body.resultCode,
        "amount": amount,
    }

    if body.resultCode == settings.payment_success_code:
        try:
            result = await issue_licenses_for_order(order.id, payment_meta=meta)
        except OrderNotFoundError:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="ORDER_NOT_FOUND")
        except LicenseIssuanceError:
            raise HTTPException(status_code=500, detail="LICENSE_ISSUANCE_FAILED")

        if result.already_processed:
            return {"success": True, "data": {"orderId": str(order.id), "alreadyProcessed": True}}

        await notify_payment_success(order.user_id, order.id, [lic.license_key for lic in result.licenses])
        return {
            "success": True,
            "data": {"orderId": str(order.id), "licensesIssued": len(result.licenses)},
        }

    failed = await mark_order_failed(order.id, f"Payment failed with code {body.resultCode}", meta)
    if failed:
        logger.info("[payment] order %s failed with result code %s", order.id, body.resultCode)
        await notify_payment_failed(order.user_id, order.id, f"Payment failed with code {body.resultCode}")
    return {"success": True, "data": {"orderId": str(order.id), "failed": failed}}
