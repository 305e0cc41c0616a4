"""
Static plan catalog: plan tier -> per-metric limit.

Lookups never raise. A tier or metric missing from the catalog maps to a
limit of 0 so a configuration gap can never grant unlimited access.
"""

from types import MappingProxyType
from typing import Mapping, Optional, Union

from common.core.otel_axiom_exporter import get_logger
from packages.metering.exceptions import UnknownMetricError, UnknownPlanTierError
from packages.metering.models.domain.entitlement import UNLIMITED, Limit
from packages.metering.models.domain.enums import (
    FailurePolicy,
    MeteringWindow,
    Metric,
    PlanTier,
)
from packages.metering.models.domain.plans import (
    MetricPolicy,
    PlanInfo,
    PlanMetricLimit,
)

logger = get_logger(__name__)

DEFAULT_METRIC_POLICIES: dict[Metric, MetricPolicy] = {
    Metric.DM_SENT: MetricPolicy(
        metric=Metric.DM_SENT.value,
        window=MeteringWindow.DAILY,
        failure_policy=FailurePolicy.FAIL_OPEN,
        label="DMs sent",
    ),
    Metric.COMMENT_REPLIED: MetricPolicy(
        metric=Metric.COMMENT_REPLIED.value,
        window=MeteringWindow.DAILY,
        failure_policy=FailurePolicy.FAIL_OPEN,
        label="Comment replies",
    ),
    Metric.AUTOMATION_CREATED: MetricPolicy(
        metric=Metric.AUTOMATION_CREATED.value,
        window=MeteringWindow.LIFETIME,
        failure_policy=FailurePolicy.FAIL_CLOSED,
        label="Automations",
    ),
    Metric.SMART_AI_REPLY: MetricPolicy(
        metric=Metric.SMART_AI_REPLY.value,
        window=MeteringWindow.DAILY,
        failure_policy=FailurePolicy.FAIL_CLOSED,
        label="Smart AI replies",
    ),
}

DEFAULT_PLAN_LIMITS: dict[PlanTier, dict[Metric, Limit]] = {
    PlanTier.FREE: {
        Metric.DM_SENT: 50,
        Metric.COMMENT_REPLIED: 50,
        Metric.AUTOMATION_CREATED: 3,
        Metric.SMART_AI_REPLY: 0,  # Pro feature
    },
    PlanTier.PRO: {
        Metric.DM_SENT: UNLIMITED,
        Metric.COMMENT_REPLIED: UNLIMITED,
        Metric.AUTOMATION_CREATED: UNLIMITED,
        Metric.SMART_AI_REPLY: UNLIMITED,
    },
}

PLAN_METADATA = {
    PlanTier.FREE: {
        "name": "Free",
        "description": "Get started with DM and comment automations",
    },
    PlanTier.PRO: {
        "name": "Pro",
        "description": "Unlimited automations with Smart AI",
    },
}

# Used for metrics outside the catalog: daily window, deny on store failure
_UNKNOWN_METRIC_POLICY = dict(
    window=MeteringWindow.DAILY,
    failure_policy=FailurePolicy.FAIL_CLOSED,
)


def parse_metric(value: Union[Metric, str]) -> Metric:
    """Convert a raw metric name into a Metric, raising on unknown names."""
    if isinstance(value, Metric):
        return value
    try:
        return Metric(str(value).upper())
    except ValueError as e:
        raise UnknownMetricError(f"Unknown metric: {value!r}") from e


def parse_plan_tier(value: Union[PlanTier, str]) -> PlanTier:
    """Convert a raw plan tier into a PlanTier, raising on unknown tiers."""
    if isinstance(value, PlanTier):
        return value
    try:
        return PlanTier(str(value).upper())
    except ValueError as e:
        raise UnknownPlanTierError(f"Unknown plan tier: {value!r}") from e


class PlanRegistry:
    """Read-only plan limits and metric policies shared by all callers."""

    def __init__(
        self,
        limits: Optional[Mapping[PlanTier, Mapping[Metric, Limit]]] = None,
        policies: Optional[Mapping[Metric, MetricPolicy]] = None,
    ):
        limits = DEFAULT_PLAN_LIMITS if limits is None else limits
        policies = DEFAULT_METRIC_POLICIES if policies is None else policies

        for tier, tier_limits in limits.items():
            for metric, limit in tier_limits.items():
                if limit != UNLIMITED and (not isinstance(limit, int) or limit < 0):
                    raise ValueError(
                        f"Invalid limit {limit!r} for {tier.value}/{metric.value}"
                    )

        self._limits = MappingProxyType(
            {tier: MappingProxyType(dict(tier_limits)) for tier, tier_limits in limits.items()}
        )
        self._policies = MappingProxyType(dict(policies))

    def limit_for(
        self, plan_tier: Union[PlanTier, str], metric: Union[Metric, str]
    ) -> Limit:
        """
        Get the per-period limit for a tier and metric.

        Returns UNLIMITED or a non-negative int. Unknown tiers and metrics
        return 0.
        """
        try:
            tier = parse_plan_tier(plan_tier)
            metric = parse_metric(metric)
        except (UnknownPlanTierError, UnknownMetricError) as e:
            logger.warning(
                f"Plan lookup miss, failing closed: {e}",
                extra={"plan_tier": str(plan_tier), "metric": str(metric)},
            )
            return 0

        tier_limits = self._limits.get(tier)
        if tier_limits is None or metric not in tier_limits:
            logger.warning(
                f"No limit configured for {tier.value}/{metric.value}, failing closed",
                extra={"plan_tier": tier.value, "metric": metric.value},
            )
            return 0

        return tier_limits[metric]

    def is_unlimited(
        self, plan_tier: Union[PlanTier, str], metric: Union[Metric, str]
    ) -> bool:
        return self.limit_for(plan_tier, metric) == UNLIMITED

    def policy_for(self, metric: Union[Metric, str]) -> MetricPolicy:
        """Get window and failure policy for a metric."""
        try:
            policy = self._policies.get(parse_metric(metric))
        except UnknownMetricError:
            policy = None

        if policy is None:
            return MetricPolicy(
                metric=str(metric), label=str(metric), **_UNKNOWN_METRIC_POLICY
            )
        return policy

    def metrics(self) -> list[Metric]:
        """Metrics with a configured policy, in catalog order."""
        return list(self._policies.keys())

    def plans(self) -> list[PlanInfo]:
        """Describe every tier for the plans endpoint."""
        plans = []
        for tier in PlanTier:
            metadata = PLAN_METADATA.get(tier, {"name": tier.value, "description": ""})
            limits = [
                PlanMetricLimit(
                    metric=metric,
                    window=policy.window,
                    limit=self.limit_for(tier, metric),
                    label=policy.label,
                )
                for metric, policy in self._policies.items()
            ]
            plans.append(
                PlanInfo(
                    tier=tier,
                    name=metadata["name"],
                    description=metadata["description"],
                    limits=limits,
                )
            )
        return plans


_registry: Optional[PlanRegistry] = None


def get_plan_registry() -> PlanRegistry:
    """Get the process-wide plan registry."""
    global _registry

    if _registry is None:
        _registry = PlanRegistry()

    return _registry
