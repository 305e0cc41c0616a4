from typing import Optional
import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from common.core.config import settings
from common.core.otel_axiom_exporter import get_logger, trace_span
from packages.metering.exceptions import StoreUnavailableError
from packages.metering.models.domain.entitlement import IncrementResult
from packages.metering.models.domain.period import Period

from .interface import CounterStoreInterface

logger = get_logger(__name__)

# Atomic bounded increment: returns {applied, count}.
# ARGV[2] < 0 means no ceiling.
_INCREMENT_SCRIPT = """
local current = tonumber(redis.call("get", KEYS[1]) or "0")
local by = tonumber(ARGV[1])
local ceiling = tonumber(ARGV[2])
if ceiling >= 0 and current + by > ceiling then
    return {0, current}
end
return {1, redis.call("incrby", KEYS[1], by)}
"""


class RedisCounterStore(CounterStoreInterface):
    """Redis-based counter store; keys never expire."""

    def __init__(self):
        self.host = settings.redis_host
        self.port = settings.redis_port
        self.password = settings.redis_password
        self.db = settings.redis_db
        self._client: Optional[redis.Redis] = None
        self._key_prefix = settings.metering_redis_key_prefix
        self._connected = False

    async def connect(self) -> bool:
        """Connect to Redis."""
        try:
            self._client = redis.Redis(
                host=self.host,
                port=self.port,
                password=self.password,
                db=self.db,
                decode_responses=True,
            )
            # Test connection
            await self._client.ping()
            self._connected = True
            logger.info("Redis counter store connected")
            return True
        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self._connected = False
            return False

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._connected = False
            logger.info("Redis counter store disconnected")

    async def _ensure_connected(self) -> None:
        if not self._connected and not await self.connect():
            raise StoreUnavailableError("Redis counter store is not reachable")

    def _key(self, subject_id: str, metric: str, period: Period) -> str:
        return f"{self._key_prefix}{subject_id}:{metric}:{period.key}"

    @trace_span
    async def increment(
        self,
        subject_id: str,
        metric: str,
        period: Period,
        by: int = 1,
        ceiling: Optional[int] = None,
    ) -> IncrementResult:
        self._validate_increment(by, ceiling)
        await self._ensure_connected()

        key = self._key(subject_id, metric, period)
        try:
            applied, count = await self._client.eval(
                _INCREMENT_SCRIPT, 1, key, by, -1 if ceiling is None else ceiling
            )
        except (RedisConnectionError, RedisTimeoutError) as e:
            self._connected = False
            logger.error(f"Redis increment failed for {key}: {e}")
            raise StoreUnavailableError(str(e)) from e

        return IncrementResult(applied=bool(int(applied)), count=int(count))

    @trace_span
    async def read(self, subject_id: str, metric: str, period: Period) -> int:
        await self._ensure_connected()

        key = self._key(subject_id, metric, period)
        try:
            value = await self._client.get(key)
        except (RedisConnectionError, RedisTimeoutError) as e:
            self._connected = False
            logger.error(f"Redis read failed for {key}: {e}")
            raise StoreUnavailableError(str(e)) from e

        return int(value) if value is not None else 0

    async def health_check(self) -> bool:
        try:
            await self._ensure_connected()
            return bool(await self._client.ping())
        except (StoreUnavailableError, RedisConnectionError, RedisTimeoutError) as e:
            logger.error(f"Redis health check failed: {e}")
            return False
