"""
Interface for counter stores.

A counter store durably holds one integer per (subject, metric, period) and
is the only point of mutual exclusion between concurrent metering callers.
"""

from abc import ABC, abstractmethod
from typing import Optional

from packages.metering.models.domain.entitlement import IncrementResult
from packages.metering.models.domain.period import Period


class CounterStoreInterface(ABC):
    """Abstract interface for counter stores."""

    @abstractmethod
    async def increment(
        self,
        subject_id: str,
        metric: str,
        period: Period,
        by: int = 1,
        ceiling: Optional[int] = None,
    ) -> IncrementResult:
        """
        Atomically add `by` to a counter, creating it if absent.

        Args:
            subject_id: Metered subject
            metric: Metric name
            period: Period the event belongs to
            by: Positive amount to add
            ceiling: If set, only apply when the result would be <= ceiling

        Returns:
            IncrementResult with applied=True and the store's new count, or
            applied=False and the current count when the ceiling refused it

        Raises:
            StoreUnavailableError: The store could not be reached
            ValueError: `by` is not positive
        """
        pass

    @abstractmethod
    async def read(self, subject_id: str, metric: str, period: Period) -> int:
        """
        Read a counter without mutating it (0 when absent).

        Raises:
            StoreUnavailableError: The store could not be reached
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        pass

    @staticmethod
    def _validate_increment(by: int, ceiling: Optional[int]) -> None:
        if by <= 0:
            raise ValueError(f"Increment must be positive, got {by}")
        if ceiling is not None and ceiling < 0:
            raise ValueError(f"Ceiling must be non-negative, got {ceiling}")
