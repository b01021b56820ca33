import os
import uuid
from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from license_server.core import db as db_module
from license_server.core.principal import Principal
from license_server.core.security import hash_password
from license_server.main import app
from license_server.models import BillingInterval, Subscription, SubscriptionStatus, User


TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """
    Fresh database for service-level tests (no HTTP layer).
    """
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(db):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    Startup hooks are not run; the db fixture already initialized Tortoise.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def create_admin(db):
    """
    Factory fixture to create admin users directly via ORM for privileged endpoints.
    """

    async def _create_admin(password: str = "AdminPass!23") -> tuple[User, str]:
        user = await User.create(
            email=f"admin_{uuid.uuid4().hex[:6]}@example.com",
            password_hash=hash_password(password),
            role="admin",
        )
        return user, password

    return _create_admin


@pytest_asyncio.fixture
async def create_user(db):
    """
    Factory fixture to create regular users directly.
    """

    async def _create_user(password: str = "UserPass!23") -> tuple[User, str]:
        user = await User.create(
            email=f"user_{uuid.uuid4().hex[:6]}@example.com",
            password_hash=hash_password(password),
            role="user",
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def create_subscription(db):
    """
    Factory fixture writing a subscription row directly (no pricing rules).
    """

    async def _create_subscription(
        user: User,
        user_count: int = 5,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        is_trial_mode: bool = False,
        trial_ends_at=None,
        billing_interval: BillingInterval = BillingInterval.MONTH,
        total_price: Decimal = Decimal("25.00"),
    ) -> Subscription:
        return await Subscription.create(
            user=user,
            user_count=user_count,
            billing_interval=billing_interval,
            total_price=total_price,
            status=status,
            is_trial_mode=is_trial_mode,
            trial_ends_at=trial_ends_at,
        )

    return _create_subscription


@pytest_asyncio.fixture
async def admin_principal(create_admin) -> Principal:
    admin, _ = await create_admin()
    return Principal(user_id=admin.id, is_admin=True)


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(email: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/auth/login",
            json={"email": email, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["token"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
