import asyncio
from typing import Dict, Optional, Tuple

from common.core.otel_axiom_exporter import get_logger
from packages.metering.models.domain.entitlement import IncrementResult
from packages.metering.models.domain.period import Period

from .interface import CounterStoreInterface

logger = get_logger(__name__)

CounterKey = Tuple[str, str, str]


class MemoryCounterStore(CounterStoreInterface):
    """
    In-process counter store.

    Counters live for the lifetime of the process; use for local
    development and tests only.
    """

    def __init__(self):
        self._counters: Dict[CounterKey, int] = {}
        self._lock = asyncio.Lock()
        logger.info("Memory counter store initialized")

    async def increment(
        self,
        subject_id: str,
        metric: str,
        period: Period,
        by: int = 1,
        ceiling: Optional[int] = None,
    ) -> IncrementResult:
        self._validate_increment(by, ceiling)
        key = (subject_id, metric, period.key)

        async with self._lock:
            current = self._counters.get(key, 0)
            if ceiling is not None and current + by > ceiling:
                return IncrementResult(applied=False, count=current)

            self._counters[key] = current + by
            return IncrementResult(applied=True, count=current + by)

    async def read(self, subject_id: str, metric: str, period: Period) -> int:
        return self._counters.get((subject_id, metric, period.key), 0)

    async def health_check(self) -> bool:
        return True
