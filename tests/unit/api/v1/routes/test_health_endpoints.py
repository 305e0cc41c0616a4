from unittest.mock import AsyncMock, MagicMock, patch

from httpx import AsyncClient

import api.main
import common.db.session
from common.core.config import settings
from packages.metering.providers.counter_store.memory_counter_store import (
    MemoryCounterStore,
)
from packages.metering.providers.counter_store.redis_counter_store import (
    RedisCounterStore,
)


class TestHealthEndpoints:
    """Integration tests for health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        """Test health check endpoint."""
        response = await client.get("/api/v1/health/")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "slide-metering"}

    async def test_db_health_check(self, client: AsyncClient):
        """Test database health check endpoint."""
        response = await client.get("/api/v1/health/db")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"

    async def test_counter_store_health_check(self, client: AsyncClient):
        """Test counter store health check endpoint."""
        response = await client.get("/api/v1/health/counter-store")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["counter_store"] == "sql"

    async def test_healthz(self, client: AsyncClient):
        """Test internal k8s probe endpoint."""
        response = await client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestLifespan:
    """Tests for application startup and shutdown."""

    async def test_redis_store_disconnected_on_shutdown(self):
        store = MagicMock(spec=RedisCounterStore)
        store.disconnect = AsyncMock()

        with patch.object(api.main, "get_counter_store", return_value=store):
            async with api.main.lifespan(api.main.app):
                store.disconnect.assert_not_awaited()

        store.disconnect.assert_awaited_once()

    async def test_other_stores_need_no_shutdown(self):
        store = MemoryCounterStore()

        with patch.object(api.main, "get_counter_store", return_value=store):
            async with api.main.lifespan(api.main.app):
                pass

    def test_schema_is_left_to_migrations(self):
        assert not hasattr(common.db.session, "init_db")
        assert not hasattr(settings, "redis_connection_url")
