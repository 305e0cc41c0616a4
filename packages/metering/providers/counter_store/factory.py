from typing import Optional

from common.core.config import settings
from common.core.constants import CounterStoreBackend
from common.core.otel_axiom_exporter import get_logger

from .interface import CounterStoreInterface
from .memory_counter_store import MemoryCounterStore
from .redis_counter_store import RedisCounterStore
from .sql_counter_store import SqlCounterStore

logger = get_logger(__name__)

# Global instance
_counter_store: Optional[CounterStoreInterface] = None


def get_counter_store() -> CounterStoreInterface:
    """
    Get the configured counter store.

    Returns:
        CounterStoreInterface: The counter store instance
    """
    global _counter_store

    if _counter_store is None:
        backend = settings.metering_counter_store
        if backend == CounterStoreBackend.REDIS:
            _counter_store = RedisCounterStore()
        elif backend == CounterStoreBackend.MEMORY:
            _counter_store = MemoryCounterStore()
        else:
            _counter_store = SqlCounterStore()
        logger.info(f"Initialized {backend.value} counter store")

    return _counter_store
