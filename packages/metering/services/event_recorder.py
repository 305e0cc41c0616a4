"""
Event recorder: the single writer of usage counters.

Webhook handlers and user actions call record_event() before performing a
metered action. The returned decision gates the action; a denied action is
never charged.
"""

from typing import Optional, Union

from common.core.config import settings
from common.core.constants import EnforcementMode
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.metering.exceptions import UnknownMetricError
from packages.metering.models.domain.entitlement import (
    UNLIMITED,
    EntitlementDecision,
    Limit,
    RecordResult,
)
from packages.metering.models.domain.enums import Metric, PlanTier, RecordStatus
from packages.metering.models.domain.period import Period
from packages.metering.providers.counter_store import (
    CounterStoreInterface,
    get_counter_store,
)
from packages.metering.repositories.subscription_repository import (
    SubscriptionRepository,
)
from packages.metering.services.entitlement_evaluator import evaluate
from packages.metering.services.period_resolver import Moment, resolve_period
from packages.metering.services.plan_registry import (
    PlanRegistry,
    get_plan_registry,
    parse_metric,
)

logger = get_logger(__name__)


class EventRecorder:
    """
    Combines period resolution, plan lookup, evaluation and increment.

    Two enforcement modes:

    - STRICT (default): increment first with the limit as a ceiling. The
      counter store applies the bound inside its atomic increment, so
      concurrent callers can never push a counter past its limit.
    - ADVISORY: read, evaluate, then increment. Cheaper on stores without
      bounded increments, but N concurrent callers that all read limit - 1
      are all admitted and overshoot the limit by N - 1.

    Store failures propagate as StoreUnavailableError; nothing is retried
    here because a retried increment without a deduplication token can
    double count.
    """

    def __init__(
        self,
        counter_store: Optional[CounterStoreInterface] = None,
        registry: Optional[PlanRegistry] = None,
        subscription_repo: Optional[SubscriptionRepository] = None,
        mode: Optional[EnforcementMode] = None,
        timezone_name: Optional[str] = None,
    ):
        self.counter_store = counter_store or get_counter_store()
        self.registry = registry or get_plan_registry()
        self.subscription_repo = subscription_repo or SubscriptionRepository()
        self.mode = mode or settings.metering_enforcement
        self.timezone_name = timezone_name

    async def _resolve_plan_tier(
        self, subject_id: str, plan_tier: Optional[Union[PlanTier, str]]
    ) -> Union[PlanTier, str]:
        if plan_tier is not None:
            return plan_tier
        return await self.subscription_repo.get_plan_tier(subject_id)

    @trace_span
    async def record_event(
        self,
        subject_id: str,
        metric: Union[Metric, str],
        now: Moment = None,
        plan_tier: Optional[Union[PlanTier, str]] = None,
    ) -> RecordResult:
        """
        Record one metered event if the subject's plan allows it.

        Args:
            subject_id: Metered subject
            metric: Metric being consumed
            now: Event time (defaults to current time)
            plan_tier: Plan tier if the caller already knows it

        Returns:
            RecordResult; new_count is the store's value after the call

        Raises:
            StoreUnavailableError: The counter store could not be reached
            InvalidPeriodError: `now` cannot be resolved to a period
        """
        policy = self.registry.policy_for(metric)
        period = resolve_period(now, policy.window, self.timezone_name)
        tier = await self._resolve_plan_tier(subject_id, plan_tier)
        limit = self.registry.limit_for(tier, metric)
        tier_name = tier.value if isinstance(tier, PlanTier) else str(tier)

        try:
            metric_name = parse_metric(metric).value
        except UnknownMetricError:
            # Limit is already 0; deny without touching the store
            return self._result(
                evaluate(0, 0), subject_id, str(metric), tier_name, period, 0
            )

        if self.mode == EnforcementMode.STRICT:
            decision, new_count = await self._record_strict(
                subject_id, metric_name, period, limit
            )
        else:
            decision, new_count = await self._record_advisory(
                subject_id, metric_name, period, limit
            )

        result = self._result(
            decision, subject_id, metric_name, tier_name, period, new_count
        )

        if result.allowed:
            logger.debug(
                f"Recorded {metric_name} for {subject_id} ({new_count}/{limit})",
                extra={
                    "subject_id": subject_id,
                    "metric": metric_name,
                    "period_key": period.key,
                    "new_count": new_count,
                },
            )
        else:
            logger.info(
                f"Denied {metric_name} for {subject_id}: limit {limit} reached on {tier_name}",
                extra={
                    "subject_id": subject_id,
                    "metric": metric_name,
                    "period_key": period.key,
                    "current_count": decision.current_count,
                    "plan_tier": tier_name,
                },
            )

        return result

    async def _record_strict(
        self, subject_id: str, metric: str, period: Period, limit: Limit
    ) -> tuple[EntitlementDecision, int]:
        ceiling = None if limit == UNLIMITED else limit
        increment = await self.counter_store.increment(
            subject_id, metric, period, by=1, ceiling=ceiling
        )

        if not increment.applied:
            return evaluate(increment.count, limit), increment.count

        # Decision reflects the count this event was admitted against
        return evaluate(increment.count - 1, limit), increment.count

    async def _record_advisory(
        self, subject_id: str, metric: str, period: Period, limit: Limit
    ) -> tuple[EntitlementDecision, int]:
        current = await self.counter_store.read(subject_id, metric, period)
        decision = evaluate(current, limit)

        if not decision.allowed:
            return decision, current

        increment = await self.counter_store.increment(subject_id, metric, period)
        return decision, increment.count

    @staticmethod
    def _result(
        decision: EntitlementDecision,
        subject_id: str,
        metric: str,
        plan_tier: str,
        period: Period,
        new_count: int,
    ) -> RecordResult:
        return RecordResult(
            **decision.model_dump(),
            status=RecordStatus.ADMITTED if decision.allowed else RecordStatus.DENIED,
            subject_id=subject_id,
            metric=metric,
            plan_tier=plan_tier,
            period_key=period.key,
            new_count=new_count,
        )
