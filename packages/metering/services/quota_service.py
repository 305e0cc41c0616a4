"""
Service for quota enforcement and checking.

This is the entry point inbound events go through before a metered action
runs. It applies each metric's failure policy when the counter store is down
and builds the read-only quota views used by the dashboard.
"""

from typing import Optional, Union
from fastapi import HTTPException, status

from common.core.config import settings
from common.core.otel_axiom_exporter import trace_span, get_logger, log_span_event
from packages.metering.exceptions import StoreUnavailableError
from packages.metering.models.domain.entitlement import (
    UNLIMITED,
    GateOutcome,
    Limit,
    StoreUnavailableOutcome,
)
from packages.metering.models.domain.enums import FailurePolicy, Metric, PlanTier
from packages.metering.models.domain.usage import QuotaCheck, UsageSummary
from packages.metering.providers.counter_store import (
    CounterStoreInterface,
    get_counter_store,
)
from packages.metering.repositories.subscription_repository import (
    SubscriptionRepository,
)
from packages.metering.services.entitlement_evaluator import evaluate
from packages.metering.services.event_recorder import EventRecorder
from packages.metering.services.period_resolver import (
    Moment,
    ensure_current_period,
    resolve_period,
)
from packages.metering.services.plan_registry import (
    PlanRegistry,
    get_plan_registry,
    parse_metric,
)

logger = get_logger(__name__)


class QuotaService:
    """Service for quota enforcement."""

    def __init__(
        self,
        recorder: Optional[EventRecorder] = None,
        counter_store: Optional[CounterStoreInterface] = None,
        registry: Optional[PlanRegistry] = None,
        subscription_repo: Optional[SubscriptionRepository] = None,
    ):
        if counter_store is None:
            counter_store = recorder.counter_store if recorder else get_counter_store()
        self.counter_store = counter_store
        self.registry = registry or get_plan_registry()
        self.subscription_repo = subscription_repo or SubscriptionRepository()
        self.recorder = recorder or EventRecorder(
            counter_store=self.counter_store,
            registry=self.registry,
            subscription_repo=self.subscription_repo,
        )
        # Quota reads resolve periods the same way the recorder charges them
        self.timezone_name = self.recorder.timezone_name

    def _build_quota_check(
        self,
        metric: Metric,
        current: int,
        limit: Limit,
        period_key: str,
        period_end=None,
    ) -> QuotaCheck:
        """Build a QuotaCheck response."""
        decision = evaluate(current, limit)
        policy = self.registry.policy_for(metric)

        if limit == UNLIMITED:
            percentage_used = 0.0
        elif limit == 0:
            percentage_used = 100.0
        else:
            percentage_used = current / limit * 100

        return QuotaCheck(
            allowed=decision.allowed,
            metric=metric,
            window=policy.window,
            current_usage=current,
            limit=limit,
            remaining=decision.remaining,
            percentage_used=percentage_used,
            warning_threshold_reached=(
                limit != UNLIMITED
                and percentage_used >= settings.metering_warning_threshold_percent
            ),
            period_key=period_key,
            period_end=period_end,
        )

    def validate_event_time(
        self, metric: Union[Metric, str], occurred_at: Moment, now: Moment = None
    ) -> None:
        """
        Reject a caller-supplied event time outside the metric's current period.

        Raises:
            InvalidPeriodError: occurred_at is in a past or future period
        """
        policy = self.registry.policy_for(metric)
        ensure_current_period(occurred_at, policy.window, self.timezone_name, now=now)

    @trace_span
    async def gate_event(
        self,
        subject_id: str,
        metric: Union[Metric, str],
        now: Moment = None,
        plan_tier: Optional[Union[PlanTier, str]] = None,
    ) -> GateOutcome:
        """
        Record an event, applying the metric's failure policy on store errors.

        Returns:
            RecordResult when the store answered, StoreUnavailableOutcome
            when it did not
        """
        try:
            return await self.recorder.record_event(
                subject_id, metric, now=now, plan_tier=plan_tier
            )
        except StoreUnavailableError as e:
            policy = self.registry.policy_for(metric)
            fail_open = policy.failure_policy == FailurePolicy.FAIL_OPEN

            attributes = {
                "subject_id": subject_id,
                "metric": policy.metric,
                "failure_policy": policy.failure_policy.value,
                "error": str(e),
            }
            if fail_open:
                # Admitted without a charge; needs reconciliation
                log_span_event("metering.unmetered_event", attributes)
            else:
                logger.error(
                    f"Counter store unavailable, denying {policy.metric} for {subject_id}",
                    extra=attributes,
                )

            return StoreUnavailableOutcome(
                subject_id=subject_id,
                metric=policy.metric,
                allowed=fail_open,
                failure_policy=policy.failure_policy,
                detail=str(e),
            )

    @trace_span
    async def enforce_event(
        self,
        subject_id: str,
        metric: Union[Metric, str],
        now: Moment = None,
    ) -> GateOutcome:
        """
        Record an event or refuse it.

        Raises HTTPException 429 if quota exceeded, 503 if the store is down
        and the metric fails closed.
        """
        outcome = await self.gate_event(subject_id, metric, now=now)

        if outcome.allowed:
            return outcome

        if isinstance(outcome, StoreUnavailableOutcome):
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Usage tracking is temporarily unavailable. Please try again shortly.",
            )

        logger.warning(
            f"Subject {subject_id} exceeded {outcome.metric} quota",
            extra={
                "subject_id": subject_id,
                "current": outcome.current_count,
                "limit": outcome.limit,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"{outcome.metric} limit reached ({outcome.limit:,}) on the {outcome.plan_tier} plan. Upgrade to Pro for more.",
        )

    @trace_span
    async def check_quota(
        self,
        subject_id: str,
        metric: Union[Metric, str],
        now: Moment = None,
        plan_tier: Optional[Union[PlanTier, str]] = None,
    ) -> QuotaCheck:
        """
        Read a subject's quota for one metric without recording anything.

        Raises:
            UnknownMetricError: metric is not in the catalog
            StoreUnavailableError: the counter store could not be read
        """
        metric = parse_metric(metric)
        policy = self.registry.policy_for(metric)
        period = resolve_period(now, policy.window, self.timezone_name)

        if plan_tier is None:
            plan_tier = await self.subscription_repo.get_plan_tier(subject_id)
        limit = self.registry.limit_for(plan_tier, metric)

        current = await self.counter_store.read(subject_id, metric.value, period)

        return self._build_quota_check(metric, current, limit, period.key, period.end)

    @trace_span
    async def get_usage_summary(
        self, subject_id: str, now: Moment = None
    ) -> UsageSummary:
        """
        Get quota checks for every metric in the catalog.
        """
        plan_tier = await self.subscription_repo.get_plan_tier(subject_id)

        checks = [
            await self.check_quota(subject_id, metric, now=now, plan_tier=plan_tier)
            for metric in self.registry.metrics()
        ]

        return UsageSummary(
            subject_id=subject_id,
            plan_tier=plan_tier.value if isinstance(plan_tier, PlanTier) else plan_tier,
            metrics=checks,
        )
