"""
Repository for subject subscriptions.
"""

from typing import Optional, Union
from sqlalchemy import select

from common.db.errors import is_unavailable_error
from common.repositories.base import BaseRepository
from packages.metering.exceptions import StoreUnavailableError
from packages.metering.models.database.subscription import SubscriptionEntity
from packages.metering.models.domain.subscription import Subscription
from packages.metering.models.domain.enums import PlanTier
from common.core.otel_axiom_exporter import trace_span, get_logger

logger = get_logger(__name__)


class SubscriptionRepository(BaseRepository[SubscriptionEntity, Subscription]):
    """Repository for managing which plan each subject is on."""

    def __init__(self, db_session=None):
        super().__init__(SubscriptionEntity, Subscription, db_session)

    @trace_span
    async def get_by_subject_id(self, subject_id: str) -> Optional[Subscription]:
        """Get the subscription for a subject."""
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionEntity).where(
                    SubscriptionEntity.subject_id == subject_id
                )
            )
            db_subscription = result.scalar_one_or_none()
            return self._entity_to_domain(db_subscription) if db_subscription else None

    @trace_span
    async def get_by_customer_id(self, customer_id: str) -> Optional[Subscription]:
        """Get the subscription linked to a payment provider customer."""
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionEntity).where(
                    SubscriptionEntity.customer_id == customer_id
                )
            )
            db_subscription = result.scalar_one_or_none()
            return self._entity_to_domain(db_subscription) if db_subscription else None

    @trace_span
    async def get_plan_tier(self, subject_id: str) -> Union[PlanTier, str]:
        """
        Get a subject's plan tier.

        Subjects without a subscription row are FREE. Stored tiers this build
        does not recognize are returned as the raw string so plan lookups
        fail closed on them.

        Raises:
            StoreUnavailableError: the database could not be reached
        """
        try:
            subscription = await self.get_by_subject_id(subject_id)
        except Exception as e:
            if is_unavailable_error(e):
                logger.error(
                    f"Plan lookup unavailable for {subject_id}: {e}",
                    extra={"subject_id": subject_id},
                )
                raise StoreUnavailableError(str(e)) from e
            raise

        if subscription is None:
            return PlanTier.FREE
        try:
            return PlanTier(subscription.plan)
        except ValueError:
            return subscription.plan

    @trace_span
    async def upsert_plan(
        self,
        subject_id: str,
        plan: PlanTier,
        customer_id: Optional[str] = None,
    ) -> Subscription:
        """Set a subject's plan, creating the subscription row if needed."""
        async with self._get_session() as session:
            result = await session.execute(
                select(SubscriptionEntity).where(
                    SubscriptionEntity.subject_id == subject_id
                )
            )
            db_subscription = result.scalar_one_or_none()

            if db_subscription is None:
                db_subscription = SubscriptionEntity(
                    subject_id=subject_id,
                    plan=plan.value,
                    customer_id=customer_id,
                )
                session.add(db_subscription)
            else:
                db_subscription.plan = plan.value
                if customer_id is not None:
                    db_subscription.customer_id = customer_id

            await session.flush()
            await session.refresh(db_subscription)
            return self._entity_to_domain(db_subscription)
