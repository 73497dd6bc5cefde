"""Pytest configuration and shared fixtures."""

import os


# Settings are read at import time, so the test environment goes first
os.environ["ENVIRONMENT"] = "testing"
os.environ["AUTH_JWT_SECRET"] = "test-jwt-secret-that-is-long-enough-1234"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_nexus"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_nexus"
os.environ["STRIPE_CREATOR_PRICE_ID"] = "price_creator"
os.environ["STRIPE_PRO_PRICE_ID"] = "price_pro"
os.environ["STRIPE_ENTERPRISE_PRICE_ID"] = "price_enterprise"
os.environ["FRONTEND_URL"] = "http://app.test"

from collections.abc import AsyncGenerator  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from nexus.core.auth import Identity  # noqa: E402
from nexus.core.database import Base, get_db  # noqa: E402
from nexus.main import create_app  # noqa: E402

# Import all models to ensure they're registered with Base.metadata
from nexus.modules.billing.models import Subscription  # noqa: E402, F401
from nexus.modules.billing.stripe_client import (  # noqa: E402
    StripeClient,
    get_stripe_client,
)
from nexus.modules.workspaces.models import (  # noqa: E402
    Workspace,
    WorkspaceInvitation,  # noqa: F401
    WorkspaceMember,  # noqa: F401
)
from tests.factories.identity import IdentityFactory, add_member  # noqa: E402


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the per-test database."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session for test setup and assertions.

    The app under test opens its own sessions, so a rollback inside a
    failed request never expires objects held by the test.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def stripe_client() -> AsyncMock:
    """A Stripe client whose API calls are mocked."""
    client = AsyncMock(spec=StripeClient)
    client.get_product.return_value = {"id": "prod_pro", "metadata": {"plan_id": "pro"}}
    return client


@pytest.fixture
async def app(
    session_factory: async_sessionmaker[AsyncSession], stripe_client: AsyncMock
):
    """Create test application instance."""
    application = create_app()

    # Same commit/rollback contract as the real get_db
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_stripe_client] = lambda: stripe_client

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# ============================================================
# Identity and Workspace Fixtures
# ============================================================


@pytest.fixture
def owner() -> Identity:
    return IdentityFactory.build(email="owner@acme.com", full_name="Olivia Owner")


@pytest.fixture
def admin() -> Identity:
    return IdentityFactory.build(email="admin@acme.com", full_name="Adam Admin")


@pytest.fixture
def member() -> Identity:
    return IdentityFactory.build(email="member@acme.com", full_name="Mia Member")


@pytest.fixture
def stranger() -> Identity:
    return IdentityFactory.build(email="stranger@elsewhere.com", full_name=None)


@pytest.fixture
async def workspace(
    db: AsyncSession, owner: Identity, admin: Identity, member: Identity
) -> Workspace:
    """A workspace with an owner, an admin and a member.

    Returns:
        A committed Workspace instance
    """
    workspace = Workspace(name="Acme", slug="acme-test01", owner_id=owner.id)
    db.add(workspace)
    await db.commit()

    await add_member(db, workspace, owner, "admin")
    await add_member(db, workspace, admin, "admin")
    await add_member(db, workspace, member, "member")
    return workspace
