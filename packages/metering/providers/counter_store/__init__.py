from .interface import CounterStoreInterface
from .factory import get_counter_store

__all__ = ["CounterStoreInterface", "get_counter_store"]
