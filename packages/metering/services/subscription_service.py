"""
Service for subject plan membership.

Plan changes arrive from payment webhooks: a completed checkout moves a
subject to PRO, a cancelled subscription moves the customer back to FREE.
Counters are never touched by a plan change; the new limit applies to the
next recorded event.
"""

from typing import Optional, Union

from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.metering.repositories.subscription_repository import (
    SubscriptionRepository,
)
from packages.metering.models.domain.subscription import Subscription
from packages.metering.models.domain.enums import PlanTier
from packages.metering.services.plan_registry import parse_plan_tier

logger = get_logger(__name__)


class SubscriptionService:
    """Service for subscription management."""

    def __init__(self, subscription_repo: Optional[SubscriptionRepository] = None):
        self.subscription_repo = subscription_repo or SubscriptionRepository()

    @trace_span
    async def get_subscription(self, subject_id: str) -> Optional[Subscription]:
        return await self.subscription_repo.get_by_subject_id(subject_id)

    @trace_span
    async def get_plan_tier(self, subject_id: str) -> Union[PlanTier, str]:
        """Get a subject's tier; FREE when the subject has no subscription."""
        return await self.subscription_repo.get_plan_tier(subject_id)

    @trace_span
    async def change_plan(
        self,
        subject_id: str,
        tier: Union[PlanTier, str],
        customer_id: Optional[str] = None,
    ) -> Subscription:
        """
        Move a subject to a plan tier.

        Raises:
            UnknownPlanTierError: tier is not in the catalog
        """
        plan = parse_plan_tier(tier)

        logger.info(
            f"Changing plan for {subject_id} to {plan.value}",
            extra={
                "subject_id": subject_id,
                "plan_tier": plan.value,
                "customer_id": customer_id,
            },
        )

        return await self.subscription_repo.upsert_plan(
            subject_id=subject_id, plan=plan, customer_id=customer_id
        )

    @trace_span
    async def downgrade_customer(self, customer_id: str) -> Optional[Subscription]:
        """
        Move a payment provider customer back to FREE.

        Returns:
            The updated subscription, or None when no subject has this customer id
        """
        subscription = await self.subscription_repo.get_by_customer_id(customer_id)
        if subscription is None:
            logger.warning(
                f"Downgrade for unknown customer {customer_id}",
                extra={"customer_id": customer_id},
            )
            return None

        logger.info(
            f"Downgrading {subscription.subject_id} to FREE",
            extra={"subject_id": subscription.subject_id, "customer_id": customer_id},
        )

        return await self.subscription_repo.upsert_plan(
            subject_id=subscription.subject_id, plan=PlanTier.FREE
        )
