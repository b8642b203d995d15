import datetime as dt
import os
import uuid
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from app.config import settings
from app.core import db as db_module
from app.core.security import hash_password
from app.main import app
from app.models.license import License, LicenseStatus
from app.models.order import Order, OrderItem, OrderStatus
from app.models.product import Product
from app.models.user import User


TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

CRON_SECRET = "test-cron-secret"
MERCHANT_CODE = "DTEST01"
MERCHANT_API_KEY = "test-api-key"


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest.fixture(autouse=True)
def store_settings(monkeypatch):
    """Known secrets for the cron endpoint and the payment gateway; no SMTP."""
    monkeypatch.setattr(settings, "cron_secret", CRON_SECRET)
    monkeypatch.setattr(settings, "payment_merchant_code", MERCHANT_CODE)
    monkeypatch.setattr(settings, "payment_api_key", MERCHANT_API_KEY)
    monkeypatch.setattr(settings, "smtp_host", None)
    return settings


@pytest_asyncio.fixture
async def db():
    """Fresh database for service-level tests that do not need HTTP."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client():
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    await _init_test_db()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_admin():
    """
    Factory fixture to create admin users directly via ORM for privileged endpoints.
    """

    async def _create_admin(password: str = "AdminPass!23") -> tuple[User, str]:
        user = await User.create(
            username=f"admin_{uuid.uuid4().hex[:6]}",
            email="admin@example.com",
            name="Store Admin",
            password_hash=hash_password(password),
            role="admin",
        )
        return user, password

    return _create_admin


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create regular users directly.
    """

    async def _create_user(password: str = "UserPass!23", name: str = "Test Player") -> tuple[User, str]:
        user = await User.create(
            username=f"user_{uuid.uuid4().hex[:6]}",
            email=f"{uuid.uuid4().hex[:6]}@example.com",
            name=name,
            password_hash=hash_password(password),
            role="user",
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def create_product():
    """Factory for catalog products. ``duration_days=None`` means perpetual."""

    async def _create_product(
        name: str = "Aim Trainer Pro",
        duration_days=30,
        requires_hardware_binding: bool = False,
        is_active: bool = True,
    ) -> Product:
        return await Product.create(
            name=name,
            slug=f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}",
            version="2.1.0",
            price=Decimal("9.99"),
            duration_days=duration_days,
            requires_hardware_binding=requires_hardware_binding,
            download_url="https://cdn.example.com/files/tool.zip",
            is_active=is_active,
        )

    return _create_product


@pytest_asyncio.fixture
async def create_order():
    """Factory for a PENDING order with ``(product, quantity)`` line items."""

    async def _create_order(user: User, items) -> Order:
        order = await Order.create(user=user, status=OrderStatus.PENDING, total=Decimal("0"))
        for product, quantity in items:
            await OrderItem.create(order=order, product=product, quantity=quantity, price=product.price)
        return order

    return _create_order


@pytest_asyncio.fixture
async def create_license():
    """Factory for licenses in any state, bypassing the order flow."""

    async def _create_license(
        user: User,
        product: Product,
        key: str | None = None,
        status: LicenseStatus = LicenseStatus.ACTIVE,
        expires_in: dt.timedelta | None = dt.timedelta(days=30),
        requires_hardware_binding: bool = False,
    ) -> License:
        now = dt.datetime.now(dt.timezone.utc)
        return await License.create(
            license_key=key or f"TEST-{uuid.uuid4().hex[:4].upper()}-{uuid.uuid4().hex[:4].upper()}-0000",
            user=user,
            product=product,
            status=status,
            expires_at=(now + expires_in) if expires_in is not None else None,
            requires_hardware_binding=requires_hardware_binding,
        )

    return _create_license


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(username: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"username": username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
