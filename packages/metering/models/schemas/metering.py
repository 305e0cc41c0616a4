"""
API schemas for metering operations.

Request and response models for metering endpoints.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from packages.metering.models.domain.entitlement import (
    GateOutcome,
    Limit,
    StoreUnavailableOutcome,
)
from packages.metering.models.domain.enums import (
    FailurePolicy,
    Metric,
    PlanTier,
    RecordStatus,
)
from packages.metering.models.domain.subscription import Subscription
from packages.metering.models.domain.usage import (
    AutomationDailyActivity,
    AutomationUsage,
    DailyUsage,
    UsageTotals,
)


# ============================================================================
# Event Schemas
# ============================================================================


class RecordEventRequest(BaseModel):
    """Request to record one metered event."""

    metric: str = Field(..., description="Metric name, e.g. DM_SENT")
    occurred_at: Optional[datetime] = Field(
        default=None,
        description=(
            "When the event happened, within the current period. Defaults to now; "
            "naive times are UTC."
        ),
    )
    automation_id: Optional[str] = Field(
        default=None,
        description="Automation that produced the event, for per-automation analytics",
    )


class RecordEventResponse(BaseModel):
    """Outcome of recording an event."""

    status: RecordStatus
    allowed: bool
    subject_id: str
    metric: str

    # Present when the counter store answered
    plan_tier: Optional[str] = None
    period_key: Optional[str] = None
    current_count: Optional[int] = None
    new_count: Optional[int] = None
    limit: Optional[Limit] = None
    remaining: Optional[Limit] = None

    # Present when the counter store was unavailable
    failure_policy: Optional[FailurePolicy] = None

    @classmethod
    def from_outcome(cls, outcome: GateOutcome) -> "RecordEventResponse":
        if isinstance(outcome, StoreUnavailableOutcome):
            return cls(
                status=outcome.status,
                allowed=outcome.allowed,
                subject_id=outcome.subject_id,
                metric=outcome.metric,
                failure_policy=outcome.failure_policy,
            )
        return cls(
            status=outcome.status,
            allowed=outcome.allowed,
            subject_id=outcome.subject_id,
            metric=outcome.metric,
            plan_tier=outcome.plan_tier,
            period_key=outcome.period_key,
            current_count=outcome.current_count,
            new_count=outcome.new_count,
            limit=outcome.limit,
            remaining=outcome.remaining,
        )


# ============================================================================
# Subscription Schemas
# ============================================================================


class ChangePlanRequest(BaseModel):
    """Request to move a subject to a plan tier."""

    tier: PlanTier
    customer_id: Optional[str] = None


class SubscriptionResponse(BaseModel):
    """A subject's current plan."""

    subject_id: str
    plan: str
    customer_id: Optional[str] = None
    updated_at: datetime

    @classmethod
    def from_subscription(cls, subscription: Subscription) -> "SubscriptionResponse":
        return cls(
            subject_id=subscription.subject_id,
            plan=subscription.plan,
            customer_id=subscription.customer_id,
            updated_at=subscription.updated_at,
        )


# ============================================================================
# History Schemas
# ============================================================================


class UsageHistoryResponse(BaseModel):
    """
    Usage over a trailing window.

    Without a metric filter this carries per-metric totals; with one it
    carries the metric's day-by-day history.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    subject_id: str
    since: date
    until: date
    metric: Optional[Metric] = None
    totals: Optional[dict[Metric, int]] = None
    days: Optional[list[DailyUsage]] = None

    @classmethod
    def from_totals(cls, totals: UsageTotals) -> "UsageHistoryResponse":
        return cls(
            subject_id=totals.subject_id,
            since=totals.since,
            until=totals.until,
            totals=totals.totals,
        )


class AutomationUsageResponse(BaseModel):
    """Per-automation activity over a trailing window."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    subject_id: str
    since: date
    until: date
    automations: list[AutomationUsage]
    days: list[AutomationDailyActivity]
