"""
Repository for usage counters.
"""

from typing import Optional
from sqlalchemy import select, func

from common.db.upsert import insert_for
from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.metering.models.database.usage_counter import UsageCounterEntity
from packages.metering.models.domain.usage import UsageCounter


class UsageCounterRepository(BaseRepository[UsageCounterEntity, UsageCounter]):
    """Repository for per-(subject, metric, period) usage counters."""

    def __init__(self, db_session=None):
        super().__init__(UsageCounterEntity, UsageCounter, db_session)

    @trace_span
    async def upsert_increment(
        self,
        subject_id: str,
        metric: str,
        period_key: str,
        by: int = 1,
        ceiling: Optional[int] = None,
    ) -> Optional[int]:
        """
        Atomically create-or-increment a counter and return the new count.

        Runs as a single INSERT .. ON CONFLICT DO UPDATE .. RETURNING
        statement, so concurrent callers on the same key are serialized by
        the database row lock.

        With a ceiling, the update only applies while count + by <= ceiling.
        Returns None when the ceiling refused the increment (nothing written).
        """
        if ceiling is not None and by > ceiling:
            # The insert branch would create a row already past the ceiling
            return None

        async with self._get_session() as session:
            insert = insert_for(session)
            stmt = insert(UsageCounterEntity).values(
                subject_id=subject_id,
                metric=metric,
                period_key=period_key,
                count=by,
            )
            where = None
            if ceiling is not None:
                where = UsageCounterEntity.count + by <= ceiling
            stmt = stmt.on_conflict_do_update(
                index_elements=[
                    UsageCounterEntity.subject_id,
                    UsageCounterEntity.metric,
                    UsageCounterEntity.period_key,
                ],
                set_={
                    "count": UsageCounterEntity.count + by,
                    "updated_at": func.now(),
                },
                where=where,
            ).returning(UsageCounterEntity.count)

            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    @trace_span
    async def read_count(self, subject_id: str, metric: str, period_key: str) -> int:
        """Get a counter value, 0 when the period has no row yet."""
        async with self._get_session() as session:
            result = await session.execute(
                select(UsageCounterEntity.count).where(
                    UsageCounterEntity.subject_id == subject_id,
                    UsageCounterEntity.metric == metric,
                    UsageCounterEntity.period_key == period_key,
                )
            )
            return result.scalar_one_or_none() or 0

    @trace_span
    async def get_counters(
        self,
        subject_id: str,
        metric: str,
        start_key: Optional[str] = None,
        end_key: Optional[str] = None,
    ) -> list[UsageCounter]:
        """
        Get counter rows for a subject and metric, oldest period first.

        Daily period keys are ISO dates, so the string range
        [start_key, end_key] is a date range.
        """
        query = select(UsageCounterEntity).where(
            UsageCounterEntity.subject_id == subject_id,
            UsageCounterEntity.metric == metric,
        )
        if start_key is not None:
            query = query.where(UsageCounterEntity.period_key >= start_key)
        if end_key is not None:
            query = query.where(UsageCounterEntity.period_key <= end_key)
        query = query.order_by(UsageCounterEntity.period_key.asc())

        async with self._get_session() as session:
            result = await session.execute(query)
            return self._entities_to_domain(result.scalars().all())

    @trace_span
    async def sum_counts(
        self,
        subject_id: str,
        metric: str,
        start_key: str,
        end_key: str,
    ) -> int:
        """Sum a metric's daily counters over [start_key, end_key]."""
        async with self._get_session() as session:
            result = await session.execute(
                select(func.coalesce(func.sum(UsageCounterEntity.count), 0)).where(
                    UsageCounterEntity.subject_id == subject_id,
                    UsageCounterEntity.metric == metric,
                    UsageCounterEntity.period_key >= start_key,
                    UsageCounterEntity.period_key <= end_key,
                )
            )
            return result.scalar_one() or 0
