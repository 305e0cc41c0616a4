from typing import Optional

from sqlalchemy import text

from common.core.otel_axiom_exporter import get_logger, trace_span
from common.db.errors import is_unavailable_error
from common.db.scoped import get_session
from packages.metering.exceptions import StoreUnavailableError
from packages.metering.models.domain.entitlement import IncrementResult
from packages.metering.models.domain.period import Period
from packages.metering.repositories.usage_counter_repository import (
    UsageCounterRepository,
)

from .interface import CounterStoreInterface

logger = get_logger(__name__)


class SqlCounterStore(CounterStoreInterface):
    """
    Relational counter store backed by the usage_counters table.

    Each increment is one upsert statement; the database row lock is what
    serializes concurrent increments of the same key.
    """

    def __init__(self, repository: Optional[UsageCounterRepository] = None):
        self.repository = repository or UsageCounterRepository()

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
        try:
            new_count = await self.repository.upsert_increment(
                subject_id=subject_id,
                metric=metric,
                period_key=period.key,
                by=by,
                ceiling=ceiling,
            )
            if new_count is None:
                current = await self.repository.read_count(
                    subject_id, metric, period.key
                )
                return IncrementResult(applied=False, count=current)
            return IncrementResult(applied=True, count=new_count)
        except Exception as e:
            if is_unavailable_error(e):
                logger.error(
                    f"Counter store unavailable on increment: {e}",
                    extra={"subject_id": subject_id, "metric": metric},
                )
                raise StoreUnavailableError(str(e)) from e
            raise

    @trace_span
    async def read(self, subject_id: str, metric: str, period: Period) -> int:
        try:
            return await self.repository.read_count(subject_id, metric, period.key)
        except Exception as e:
            if is_unavailable_error(e):
                logger.error(
                    f"Counter store unavailable on read: {e}",
                    extra={"subject_id": subject_id, "metric": metric},
                )
                raise StoreUnavailableError(str(e)) from e
            raise

    async def health_check(self) -> bool:
        try:
            async with get_session(readonly=True) as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Counter store health check failed: {e}")
            return False
