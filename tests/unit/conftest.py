import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import OperationalError

from packages.metering.exceptions import StoreUnavailableError
from packages.metering.providers.counter_store.interface import CounterStoreInterface


@pytest.fixture
def mock_counter_store():
    """Create a mock counter store instance for testing."""
    store = AsyncMock(spec=CounterStoreInterface)
    store.health_check = AsyncMock(return_value=True)
    return store


@pytest.fixture
def unavailable_store(mock_counter_store):
    """Counter store whose every read and increment fails to connect."""
    mock_counter_store.increment.side_effect = StoreUnavailableError(
        "connection refused"
    )
    mock_counter_store.read.side_effect = StoreUnavailableError("connection refused")
    mock_counter_store.health_check = AsyncMock(return_value=False)
    return mock_counter_store


@pytest.fixture
def unreachable_db_session():
    """Database session whose every statement fails to reach the server."""
    session = AsyncMock()
    session.get_bind = MagicMock()
    session.get_bind.return_value.dialect.name = "sqlite"
    session.execute = AsyncMock(
        side_effect=OperationalError(
            "SELECT 1", {}, ConnectionRefusedError("connection refused")
        )
    )
    return session
