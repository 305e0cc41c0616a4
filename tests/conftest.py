# Shared pytest configuration and fixtures for all test types
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from slowapi import Limiter
from slowapi.util import get_remote_address
from unittest.mock import patch

# Create test limiter with no limits and in-memory storage
test_limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri="memory://",
)

# Patch the limiter before importing the app so decorators use test limiter
with patch("common.providers.rate_limiter.limiter.limiter", test_limiter):
    from api.main import app

from common.db.session import get_db
from common.db.base import Base
from packages.metering.models.database.subscription import SubscriptionEntity
from packages.metering.models.database.usage_counter import UsageCounterEntity
from packages.metering.models.domain.enums import PlanTier
from packages.metering.models.domain.subscription import Subscription
from packages.metering.providers.counter_store.memory_counter_store import (
    MemoryCounterStore,
)
from packages.metering.providers.counter_store.sql_counter_store import (
    SqlCounterStore,
)
from packages.metering.repositories.subscription_repository import (
    SubscriptionRepository,
)
from packages.metering.routes.metering import (
    get_quota_service,
    get_usage_service,
    get_subscription_service,
)
from packages.metering.services.event_recorder import EventRecorder
from packages.metering.services.plan_registry import PlanRegistry
from packages.metering.services.quota_service import QuotaService
from packages.metering.services.subscription_service import SubscriptionService
from packages.metering.services.usage_service import UsageService

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine and initialize schema."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_connection(test_engine):
    """Create test connection with outer transaction for rollback isolation."""
    async with test_engine.connect() as connection:
        trans = await connection.begin()
        yield connection
        await trans.rollback()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_connection):
    """Create session factory bound to test connection.

    Using join_transaction_mode="create_savepoint" so nested transaction()
    calls create savepoints instead of real nested transactions.
    """
    return async_sessionmaker(
        bind=test_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(test_session_factory):
    """Create a test database session."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function", autouse=True)
async def patch_lazy_sessions(test_session_factory, monkeypatch):
    """
    Patch session factories to use test database.

    This allows real transaction() and get_session() to run with proper
    commit/rollback/ContextVar semantics while using the test database.
    """
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", test_session_factory)
    monkeypatch.setattr(
        "common.db.scoped.AsyncSessionLocalReadonly", test_session_factory
    )


@pytest.fixture
def registry():
    """Default plan catalog."""
    return PlanRegistry()


@pytest.fixture
def memory_store():
    """Fresh in-process counter store."""
    return MemoryCounterStore()


@pytest.fixture
def sql_store():
    """Counter store backed by the test database."""
    return SqlCounterStore()


@pytest.fixture
def subscription_repo():
    return SubscriptionRepository()


@pytest.fixture
def recorder(sql_store, registry, subscription_repo):
    """Event recorder over the test database in strict mode."""
    return EventRecorder(
        counter_store=sql_store,
        registry=registry,
        subscription_repo=subscription_repo,
    )


@pytest_asyncio.fixture(scope="function")
async def client(test_db: AsyncSession, sql_store, registry, subscription_repo):
    """Create a test client."""

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    def override_get_quota_service():
        return QuotaService(
            counter_store=sql_store,
            registry=registry,
            subscription_repo=subscription_repo,
        )

    def override_get_usage_service():
        return UsageService(registry=registry)

    def override_get_subscription_service():
        return SubscriptionService(subscription_repo)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_quota_service] = override_get_quota_service
    app.dependency_overrides[get_usage_service] = override_get_usage_service
    app.dependency_overrides[get_subscription_service] = (
        override_get_subscription_service
    )

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def sample_subscription(test_db: AsyncSession) -> Subscription:
    """Create a PRO subscription linked to a payment customer."""
    subscription = SubscriptionEntity(
        subject_id="user_pro",
        plan=PlanTier.PRO.value,
        customer_id="cus_test123",
    )
    test_db.add(subscription)
    await test_db.commit()
    await test_db.refresh(subscription)
    return Subscription.model_validate(subscription)


@pytest_asyncio.fixture(scope="function")
async def sample_counter(test_db: AsyncSession) -> UsageCounterEntity:
    """A FREE subject one DM short of the daily limit on 2026-10-19."""
    counter = UsageCounterEntity(
        subject_id="user_free",
        metric="DM_SENT",
        period_key="2026-10-19",
        count=49,
    )
    test_db.add(counter)
    await test_db.commit()
    await test_db.refresh(counter)
    return counter
