"""
License issuance.

A license is only ever minted as a side effect of an order moving to PAID,
from PENDING or from FAILED (a success callback that follows a declined
attempt). That transition is a guarded compare-and-set executed in the same
transaction as the license inserts, so:

- re-delivered payment callbacks find nothing to claim and create nothing;
- a failure on any unit rolls the order back to its previous status with zero
  licenses, leaving the gateway (or an operator) free to retry the whole
  issuance.
"""
import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction

from app.core.errors import LicenseError, LicenseIssuanceError, OrderNotFoundError
from app.core.timeutil import utc_now
from app.models.license import License, LicenseStatus
from app.models.order import Order, OrderItem, OrderStatus
from app.models.product import Product
from app.models.user import User
from app.services.license_keys import mint_unique_key

logger = logging.getLogger("uvicorn.error")

# A PAID order is never claimed again; CANCELLED orders are closed by the buyer
PAYABLE_STATUSES = [OrderStatus.PENDING, OrderStatus.FAILED]


@dataclass
class IssuanceResult:
    """Outcome of one issuance attempt for an order."""
    order_id: Any
    licenses: List[License] = field(default_factory=list)
    already_processed: bool = False  # Order was already PAID (or CANCELLED); nothing was created


def license_expiry(product: Product, issued_at: dt.datetime) -> Optional[dt.datetime]:
    """issued_at + product.duration_days, or None for perpetual products."""
    if not product.duration_days:
        return None
    return issued_at + dt.timedelta(days=product.duration_days)


async def issue_licenses_for_order(
    order_id,
    payment_meta: Optional[dict] = None,
    now: Optional[dt.datetime] = None,
) -> IssuanceResult:
    """
    Mark a verified-paid order as PAID and mint one license per purchased unit.

    Args:
        order_id: Order primary key
        payment_meta: Gateway details merged into ``order.payment_data``
        now: Issuance timestamp (defaults to current UTC time)

    Returns:
        IssuanceResult; ``already_processed`` is True when the order had
        already been paid or cancelled, in which case no license is created.

    Raises:
        OrderNotFoundError: unknown order
        LicenseIssuanceError: key generation or database failure; the order
            keeps its previous status and no license row is kept
    """
    issued_at = now or utc_now()
    order = await Order.get_or_none(id=order_id)
    if order is None:
        raise OrderNotFoundError(order_id)

    payment_data = dict(order.payment_data or {})
    payment_data.update(payment_meta or {})
    payment_data["paidAt"] = issued_at.isoformat()

    try:
        async with in_transaction() as conn:
            claimed = await Order.filter(id=order_id, status__in=PAYABLE_STATUSES).using_db(conn).update(
                status=OrderStatus.PAID,
                paid_at=issued_at,
                payment_data=payment_data,
            )
            if not claimed:
                logger.info("[issuer] order %s is already paid or closed; skipping issuance", order_id)
                return IssuanceResult(order_id=order_id, already_processed=True)

            items = await OrderItem.filter(order_id=order_id).using_db(conn).prefetch_related("product")
            licenses: List[License] = []
            for item in items:
                for _ in range(item.quantity):
                    key = await mint_unique_key(using_db=conn)
                    lic = await License.create(
                        using_db=conn,
                        license_key=key,
                        user_id=order.user_id,
                        product_id=item.product_id,
                        order_id=order_id,
                        status=LicenseStatus.ACTIVE,
                        expires_at=license_expiry(item.product, issued_at),
                        requires_hardware_binding=item.product.requires_hardware_binding,
                        created_at=issued_at,
                    )
                    licenses.append(lic)
    except (LicenseError, BaseORMException) as exc:
        logger.exception("[issuer] issuance failed for order %s; order left pending", order_id)
        raise LicenseIssuanceError(order_id) from exc

    logger.info("[issuer] order %s paid: issued %d licenses", order_id, len(licenses))
    return IssuanceResult(order_id=order_id, licenses=licenses)


async def mark_order_failed(order_id, reason: str, payment_meta: Optional[dict] = None) -> bool:
    """
    Guarded PENDING -> FAILED transition for a declined payment.

    Returns False when the order was no longer pending (e.g. a late failure
    callback after a success), leaving it untouched.
    """
    order = await Order.get_or_none(id=order_id)
    if order is None:
        raise OrderNotFoundError(order_id)

    payment_data = dict(order.payment_data or {})
    payment_data.update(payment_meta or {})
    payment_data["failedAt"] = utc_now().isoformat()
    payment_data["failureReason"] = reason

    updated = await Order.filter(id=order_id, status=OrderStatus.PENDING).update(
        status=OrderStatus.FAILED,
        payment_data=payment_data,
    )
    return bool(updated)


async def create_license(
    user: User,
    product: Product,
    expires_at: Optional[dt.datetime] = None,
    requires_hardware_binding: bool = False,
) -> License:
    """Manually issue a single ACTIVE license outside any order (admin tool)."""
    key = await mint_unique_key()
    return await License.create(
        license_key=key,
        user=user,
        product=product,
        status=LicenseStatus.ACTIVE,
        expires_at=expires_at,
        requires_hardware_binding=requires_hardware_binding,
    )
