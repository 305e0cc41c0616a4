import pytest
import pytest_asyncio
import asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy import text

from common.db.base import Base
from common.db.scoped import get_session, transaction
from common.db.context import get_current_session, readonly
from packages.metering.models.database.subscription import SubscriptionEntity
from packages.metering.repositories.usage_counter_repository import (
    UsageCounterRepository,
)


# Create a separate test engine for scoped tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def scoped_test_engine():
    """Create a test engine for scoped session tests."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def scoped_session_factory(scoped_test_engine):
    """Create session factory for scoped tests."""
    return async_sessionmaker(
        scoped_test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def patch_session_factories(scoped_session_factory, monkeypatch):
    """Patch the session factories in scoped.py to use test database."""
    monkeypatch.setattr("common.db.scoped.AsyncSessionLocal", scoped_session_factory)
    monkeypatch.setattr(
        "common.db.scoped.AsyncSessionLocalReadonly", scoped_session_factory
    )
    yield


async def count_subjects(session_factory, subject_id: str) -> int:
    async with session_factory() as verify_session:
        result = await verify_session.execute(
            text("SELECT COUNT(*) FROM subscriptions WHERE subject_id = :subject_id"),
            {"subject_id": subject_id},
        )
        return result.scalar()


class TestTransaction:
    """Test the transaction() context manager with real database."""

    async def test_transaction_commits_on_success(
        self, patch_session_factories, scoped_session_factory
    ):
        """Test that transaction commits data to database."""
        async with transaction() as session:
            session.add(SubscriptionEntity(subject_id="user_tx"))

        assert await count_subjects(scoped_session_factory, "user_tx") == 1

    async def test_transaction_rollback_on_exception(
        self, patch_session_factories, scoped_session_factory
    ):
        """Test that transaction rolls back on exception."""
        with pytest.raises(ValueError):
            async with transaction() as session:
                session.add(SubscriptionEntity(subject_id="user_rollback"))
                await session.flush()  # Make sure it would have been written
                raise ValueError("Simulated error")

        assert await count_subjects(scoped_session_factory, "user_rollback") == 0

    async def test_transaction_sets_session_in_context(self, patch_session_factories):
        """Test that transaction sets session in context."""
        async with transaction() as session:
            captured_session = get_current_session(readonly=False)

        assert captured_session is session
        # After exiting, context should be cleared
        assert get_current_session(readonly=False) is None

    async def test_repository_calls_share_transaction(
        self, patch_session_factories, scoped_session_factory
    ):
        """Counter writes inside a failed transaction are rolled back together."""
        repo = UsageCounterRepository()

        with pytest.raises(RuntimeError):
            async with transaction():
                await repo.upsert_increment("user_1", "DM_SENT", "2026-10-19")
                await repo.upsert_increment("user_1", "COMMENT_REPLIED", "2026-10-19")
                raise RuntimeError("Simulated error")

        assert await repo.read_count("user_1", "DM_SENT", "2026-10-19") == 0
        assert await repo.read_count("user_1", "COMMENT_REPLIED", "2026-10-19") == 0


class TestGetSession:
    """Test standalone get_session() behavior."""

    async def test_standalone_get_session_commits(
        self, patch_session_factories, scoped_session_factory
    ):
        async with get_session() as session:
            session.add(SubscriptionEntity(subject_id="user_standalone"))

        assert await count_subjects(scoped_session_factory, "user_standalone") == 1

    async def test_get_session_reuses_transaction_session(
        self, patch_session_factories
    ):
        async with transaction() as tx_session:
            async with get_session() as session:
                assert session is tx_session

    async def test_standalone_sessions_are_independent(self, patch_session_factories):
        async with get_session() as first:
            pass
        async with get_session() as second:
            pass

        assert first is not second


class TestConcurrentTransactions:
    """Concurrent tasks never share a transaction session."""

    async def test_concurrent_transactions_are_isolated(self, patch_session_factories):
        sessions = {}

        async def run(task_id: str):
            async with transaction() as session:
                await asyncio.sleep(0.01)
                sessions[task_id] = (session, get_current_session())

        await asyncio.gather(run("a"), run("b"))

        assert sessions["a"][0] is sessions["a"][1]
        assert sessions["b"][0] is sessions["b"][1]
        assert sessions["a"][0] is not sessions["b"][0]


class TestReadonlyBehavior:
    """Readonly sessions never commit."""

    async def test_readonly_session_does_not_commit(
        self, patch_session_factories, scoped_session_factory
    ):
        @readonly
        async def write_inside_readonly():
            async with get_session() as session:
                session.add(SubscriptionEntity(subject_id="user_readonly"))
                await session.flush()

        await write_inside_readonly()

        assert await count_subjects(scoped_session_factory, "user_readonly") == 0
