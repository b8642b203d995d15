import hashlib
import uuid

import pytest

from app.models.license import License
from app.models.notification import Notification, NotificationType
from app.models.order import Order, OrderStatus
from app.services import notifications


pytestmark = pytest.mark.asyncio

CALLBACK_URL = "/api/v1/payment/callback"


def callback_body(settings, order_id, result_code="00", amount="29970"):
    raw = f"{settings.payment_merchant_code}{amount}{order_id}{settings.payment_api_key}"
    return {
        "merchantCode": settings.payment_merchant_code,
        "amount": amount,
        "merchantOrderId": str(order_id),
        "resultCode": result_code,
        "signature": hashlib.md5(raw.encode()).hexdigest(),
        "reference": "REF-001",
        "paymentCode": "VC",
    }


async def test_paid_callback_issues_licenses_once(client, store_settings, create_user, create_product, create_order):
    user, _ = await create_user()
    product = await create_product()
    order = await create_order(user, [(product, 3)])
    body = callback_body(store_settings, order.id)

    resp = await client.post(CALLBACK_URL, json=body)
    assert resp.status_code == 200
    assert resp.json()["data"]["licensesIssued"] == 3

    order = await Order.get(id=order.id)
    assert order.status == OrderStatus.PAID
    assert order.payment_data["reference"] == "REF-001"
    assert await License.filter(order_id=order.id).count() == 3
    assert await Notification.filter(user_id=user.id, type=NotificationType.PAYMENT_SUCCESS).count() == 1

    # Gateway retries the same callback
    retry = await client.post(CALLBACK_URL, json=body)
    assert retry.status_code == 200
    assert retry.json()["data"]["alreadyProcessed"] is True
    assert await License.filter(order_id=order.id).count() == 3
    assert await Notification.filter(user_id=user.id, type=NotificationType.PAYMENT_SUCCESS).count() == 1


async def test_declined_callback_fails_order(client, store_settings, create_user, create_product, create_order):
    user, _ = await create_user()
    product = await create_product()
    order = await create_order(user, [(product, 1)])

    resp = await client.post(CALLBACK_URL, json=callback_body(store_settings, order.id, result_code="01"))
    assert resp.status_code == 200
    assert resp.json()["data"]["failed"] is True

    order = await Order.get(id=order.id)
    assert order.status == OrderStatus.FAILED
    assert await License.filter(order_id=order.id).count() == 0
    assert await Notification.filter(user_id=user.id, type=NotificationType.PAYMENT_FAILED).count() == 1


async def test_bad_signature_changes_nothing(client, store_settings, create_user, create_product, create_order):
    user, _ = await create_user()
    product = await create_product()
    order = await create_order(user, [(product, 1)])
    body = callback_body(store_settings, order.id)
    body["amount"] = "1"

    resp = await client.post(CALLBACK_URL, json=body)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "INVALID_SIGNATURE"
    assert (await Order.get(id=order.id)).status == OrderStatus.PENDING
    assert await License.filter(order_id=order.id).count() == 0


async def test_unknown_order(client, store_settings):
    resp = await client.post(CALLBACK_URL, json=callback_body(store_settings, uuid.uuid4()))
    assert resp.status_code == 404

    not_uuid = await client.post(CALLBACK_URL, json=callback_body(store_settings, "ORDER-42"))
    assert not_uuid.status_code == 404


async def test_success_after_decline_pays_order(client, store_settings, create_user, create_product, create_order):
    user, _ = await create_user()
    product = await create_product()
    order = await create_order(user, [(product, 2)])

    declined = await client.post(CALLBACK_URL, json=callback_body(store_settings, order.id, result_code="01"))
    assert declined.json()["data"]["failed"] is True
    assert (await Order.get(id=order.id)).status == OrderStatus.FAILED

    # Buyer retries with another card and the gateway reports success
    paid = await client.post(CALLBACK_URL, json=callback_body(store_settings, order.id))
    assert paid.status_code == 200
    assert paid.json()["data"]["licensesIssued"] == 2

    order = await Order.get(id=order.id)
    assert order.status == OrderStatus.PAID
    assert order.paid_at is not None
    assert await License.filter(order_id=order.id).count() == 2

    # A late decline cannot undo the payment
    late = await client.post(CALLBACK_URL, json=callback_body(store_settings, order.id, result_code="01"))
    assert late.json()["data"]["failed"] is False
    assert (await Order.get(id=order.id)).status == OrderStatus.PAID
    assert await License.filter(order_id=order.id).count() == 2


async def test_paid_email_lists_issued_keys(client, store_settings, create_user, create_product, create_order, monkeypatch):
    user, _ = await create_user()
    product = await create_product()
    order = await create_order(user, [(product, 2)])
    sent = []

    async def fake_send(to_email, subject, body, subtype="plain"):
        sent.append(body)
        return True

    monkeypatch.setattr(notifications, "send_email", fake_send)

    resp = await client.post(CALLBACK_URL, json=callback_body(store_settings, order.id))
    assert resp.status_code == 200

    keys = await License.filter(order_id=order.id).values_list("license_key", flat=True)
    assert len(sent) == 1
    for key in keys:
        assert key in sent[0]
