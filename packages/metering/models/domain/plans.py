"""Domain models for plans and per-metric policy."""

from pydantic import BaseModel, ConfigDict

from packages.metering.models.domain.enums import (
    FailurePolicy,
    MeteringWindow,
    Metric,
    PlanTier,
)
from packages.metering.models.domain.entitlement import Limit


class MetricPolicy(BaseModel):
    """How one metric is windowed and how store failures are handled."""

    model_config = ConfigDict(frozen=True)

    metric: str
    window: MeteringWindow
    failure_policy: FailurePolicy
    label: str


class PlanMetricLimit(BaseModel):
    """One row of the plan catalog."""

    metric: Metric
    window: MeteringWindow
    limit: Limit
    label: str


class PlanInfo(BaseModel):
    """Limits for one plan tier."""

    tier: PlanTier
    name: str
    description: str
    limits: list[PlanMetricLimit]


class PlansResponse(BaseModel):
    """Response model for plans endpoint."""

    plans: list[PlanInfo]
