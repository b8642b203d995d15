import uuid

import pytest

from app.models.download import Download
from app.models.license import License, LicenseStatus
from app.models.security_log import SecurityLog


pytestmark = pytest.mark.asyncio


async def _login_headers(client, username: str, password: str):
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )
    assert resp.status_code == 200
    token = resp.json()["data"]["accessToken"]
    return {"Authorization": f"Bearer {token}"}


async def test_admin_license_lifecycle(client, create_admin, create_user, create_product):
    admin, admin_password = await create_admin()
    admin_headers = await _login_headers(client, admin.username, admin_password)
    customer, _ = await create_user(name="Charlie")
    product = await create_product(name="Recoil Tuner")

    create_resp = await client.post(
        "/api/v1/admin/licenses",
        headers=admin_headers,
        json={"userId": str(customer.id), "productId": str(product.id), "hardwareBinding": True},
    )
    assert create_resp.status_code == 200
    created = create_resp.json()
    assert created["status"] == "ACTIVE"
    assert created["requiresHardwareBinding"] is True
    assert created["hardwareBound"] is False
    assert created["expiresAt"] is None
    assert await SecurityLog.filter(action="LICENSE_CREATED").count() == 1

    list_resp = await client.get("/api/v1/admin/licenses", headers=admin_headers, params={"search": "charlie"})
    assert list_resp.status_code == 200
    assert list_resp.json()["total"] == 1
    assert list_resp.json()["items"][0]["id"] == created["id"]

    await Download.create(license_id=uuid.UUID(created["id"]), user=customer, product=product, ip_address="10.0.0.9")
    detail_resp = await client.get(f"/api/v1/admin/licenses/{created['id']}", headers=admin_headers)
    assert detail_resp.status_code == 200
    assert detail_resp.json()["license"]["licenseKey"] == created["licenseKey"]
    assert detail_resp.json()["stats"]["downloadCount"] == 1
    assert detail_resp.json()["stats"]["lastDownload"]["ipAddress"] == "10.0.0.9"

    revoke_resp = await client.post(
        f"/api/v1/admin/licenses/{created['id']}/revoke",
        headers=admin_headers,
        json={"reason": "chargeback"},
    )
    assert revoke_resp.status_code == 200
    assert revoke_resp.json()["status"] == "REVOKED"
    assert revoke_resp.json()["revocationReason"] == "chargeback"
    assert await SecurityLog.filter(action="LICENSE_REVOKED").count() == 1

    again = await client.post(
        f"/api/v1/admin/licenses/{created['id']}/revoke",
        headers=admin_headers,
        json={},
    )
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "LICENSE_ALREADY_REVOKED"

    validate = await client.post("/api/v1/license/validate", json={"licenseKey": created["licenseKey"]})
    assert validate.json()["reason"] == "REVOKED"


async def test_admin_list_filters(client, create_admin, create_user, create_product, create_license):
    admin, admin_password = await create_admin()
    admin_headers = await _login_headers(client, admin.username, admin_password)
    u1, _ = await create_user()
    u2, _ = await create_user()
    p1 = await create_product(name="Aim Trainer")
    p2 = await create_product(name="FPS Booster")
    await create_license(u1, p1)
    await create_license(u1, p2, status=LicenseStatus.EXPIRED)
    await create_license(u2, p2)

    by_user = await client.get("/api/v1/admin/licenses", headers=admin_headers, params={"userId": str(u1.id)})
    assert by_user.json()["total"] == 2

    by_product = await client.get("/api/v1/admin/licenses", headers=admin_headers, params={"productId": str(p2.id)})
    assert by_product.json()["total"] == 2

    by_status = await client.get("/api/v1/admin/licenses", headers=admin_headers, params={"status": "EXPIRED"})
    assert by_status.json()["total"] == 1

    by_name = await client.get("/api/v1/admin/licenses", headers=admin_headers, params={"search": "booster"})
    assert by_name.json()["total"] == 2

    page = await client.get("/api/v1/admin/licenses", headers=admin_headers, params={"offset": 0, "limit": 1})
    assert page.json()["total"] == 3
    assert len(page.json()["items"]) == 1


async def test_admin_errors(client, create_admin, create_user, create_product):
    admin, admin_password = await create_admin()
    admin_headers = await _login_headers(client, admin.username, admin_password)
    customer, _ = await create_user()

    resp = await client.post(
        "/api/v1/admin/licenses",
        headers=admin_headers,
        json={"userId": str(customer.id), "productId": str(customer.id)},
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "PRODUCT_NOT_FOUND"

    missing = await client.get(f"/api/v1/admin/licenses/{customer.id}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["detail"] == "LICENSE_NOT_FOUND"


async def test_admin_routes_reject_customers(client, create_user):
    user, password = await create_user()
    headers = await _login_headers(client, user.username, password)

    resp = await client.get("/api/v1/admin/licenses", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "FORBIDDEN_ADMIN_ONLY"
    assert await License.all().count() == 0
