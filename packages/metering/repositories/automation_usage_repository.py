"""
Repository for per-automation activity counters.
"""

from typing import Optional
from sqlalchemy import select, func

from common.db.upsert import insert_for
from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.metering.models.database.automation_usage import AutomationUsageEntity
from packages.metering.models.domain.usage import AutomationUsageCounter


class AutomationUsageRepository(
    BaseRepository[AutomationUsageEntity, AutomationUsageCounter]
):
    """Repository for daily activity counters keyed by automation."""

    def __init__(self, db_session=None):
        super().__init__(AutomationUsageEntity, AutomationUsageCounter, db_session)

    @trace_span
    async def upsert_increment(
        self,
        subject_id: str,
        automation_id: str,
        metric: str,
        period_key: str,
        by: int = 1,
    ) -> int:
        """Atomically create-or-increment an automation's daily counter."""
        async with self._get_session() as session:
            insert = insert_for(session)
            stmt = (
                insert(AutomationUsageEntity)
                .values(
                    subject_id=subject_id,
                    automation_id=automation_id,
                    metric=metric,
                    period_key=period_key,
                    count=by,
                )
                .on_conflict_do_update(
                    index_elements=[
                        AutomationUsageEntity.subject_id,
                        AutomationUsageEntity.automation_id,
                        AutomationUsageEntity.metric,
                        AutomationUsageEntity.period_key,
                    ],
                    set_={
                        "count": AutomationUsageEntity.count + by,
                        "updated_at": func.now(),
                    },
                )
                .returning(AutomationUsageEntity.count)
            )

            result = await session.execute(stmt)
            return result.scalar_one()

    @trace_span
    async def get_counters(
        self,
        subject_id: str,
        start_key: str,
        end_key: str,
        automation_id: Optional[str] = None,
    ) -> list[AutomationUsageCounter]:
        """
        Get a subject's automation counters for days in [start_key, end_key].

        Ordered by day, then automation.
        """
        query = select(AutomationUsageEntity).where(
            AutomationUsageEntity.subject_id == subject_id,
            AutomationUsageEntity.period_key >= start_key,
            AutomationUsageEntity.period_key <= end_key,
        )
        if automation_id is not None:
            query = query.where(AutomationUsageEntity.automation_id == automation_id)
        query = query.order_by(
            AutomationUsageEntity.period_key.asc(),
            AutomationUsageEntity.automation_id.asc(),
        )

        async with self._get_session() as session:
            result = await session.execute(query)
            return self._entities_to_domain(result.scalars().all())
