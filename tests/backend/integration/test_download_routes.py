import datetime as dt

import pytest

from app.models.download import Download
from app.models.license import License, LicenseStatus


pytestmark = pytest.mark.asyncio


async def test_download_records_and_returns_token(
    client, create_user, create_product, create_license, auth_header_factory
):
    user, password = await create_user()
    product = await create_product(name="Aim Trainer Pro")
    lic = await create_license(user, product)
    headers = await auth_header_factory(user.username, password)
    headers.update({"x-forwarded-for": "203.0.113.7, 10.0.0.1", "user-agent": "GameToolsLauncher/1.2"})

    resp = await client.get(f"/api/v1/downloads/{lic.id}", headers=headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["downloadUrl"] == product.download_url
    assert data["productName"] == "Aim Trainer Pro"
    assert data["downloadToken"]

    row = await Download.get(license_id=lic.id)
    assert row.ip_address == "203.0.113.7"
    assert row.user_agent == "GameToolsLauncher/1.2"

    redeem = await client.get("/api/v1/downloads/redeem", params={"token": data["downloadToken"]})
    assert redeem.status_code == 307
    assert redeem.headers["location"] == product.download_url


async def test_download_refused_for_inactive_licenses(
    client, create_user, create_product, create_license, auth_header_factory
):
    user, password = await create_user()
    product = await create_product()
    revoked = await create_license(user, product, status=LicenseStatus.REVOKED)
    overdue = await create_license(user, product, expires_in=dt.timedelta(hours=-1))
    headers = await auth_header_factory(user.username, password)

    resp = await client.get(f"/api/v1/downloads/{revoked.id}", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "LICENSE_NOT_ACTIVE"

    resp = await client.get(f"/api/v1/downloads/{overdue.id}", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "LICENSE_EXPIRED"
    assert (await License.get(id=overdue.id)).status == LicenseStatus.EXPIRED

    assert await Download.all().count() == 0


async def test_download_of_someone_elses_license(
    client, create_user, create_product, create_license, auth_header_factory
):
    owner, _ = await create_user()
    other, password = await create_user()
    product = await create_product()
    lic = await create_license(owner, product)
    headers = await auth_header_factory(other.username, password)

    resp = await client.get(f"/api/v1/downloads/{lic.id}", headers=headers)
    assert resp.status_code == 404


async def test_redeem_rejects_bad_token_and_revoked_license(
    client, create_user, create_product, create_license, auth_header_factory
):
    user, password = await create_user()
    product = await create_product()
    lic = await create_license(user, product)
    headers = await auth_header_factory(user.username, password)

    bad = await client.get("/api/v1/downloads/redeem", params={"token": "not-a-token"})
    assert bad.status_code == 401

    token = (await client.get(f"/api/v1/downloads/{lic.id}", headers=headers)).json()["data"]["downloadToken"]
    await License.filter(id=lic.id).update(status=LicenseStatus.REVOKED)

    revoked = await client.get("/api/v1/downloads/redeem", params={"token": token})
    assert revoked.status_code == 403
