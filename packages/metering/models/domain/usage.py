"""
Domain models for usage counters, quota display and usage analytics.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, computed_field

from packages.metering.models.domain.entitlement import Limit, UNLIMITED
from packages.metering.models.domain.enums import MeteringWindow, Metric


class UsageCounter(BaseModel):
    """One (subject, metric, period) counter row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    subject_id: str
    metric: str
    period_key: str
    count: int
    created_at: datetime
    updated_at: datetime


class QuotaCheck(BaseModel):
    """
    Read-only view of one metric's quota for a subject.

    Used by dashboards and banners to render "X of Y used this period"
    without touching the counter.
    """

    allowed: bool
    metric: Metric
    window: MeteringWindow
    current_usage: int
    limit: Limit
    remaining: Limit
    percentage_used: float
    warning_threshold_reached: bool

    # For frontend display
    period_key: str
    period_end: Optional[datetime] = None  # None for lifetime windows

    @computed_field
    @property
    def message(self) -> Optional[str]:
        """Banner text for display clients, None when nothing needs saying."""
        return self.get_user_message()

    def get_user_message(self) -> Optional[str]:
        """Get user-friendly message about quota status."""
        if self.limit == UNLIMITED:
            return None

        period = "today" if self.window == MeteringWindow.DAILY else "on your plan"

        if not self.allowed:
            return f"{self.metric.value} limit reached {period} ({self.limit:,}). Upgrade to Pro to continue."

        if self.warning_threshold_reached:
            return f"You've used {self.percentage_used:.0f}% of your {self.metric.value} quota {period} ({self.current_usage:,}/{self.limit:,})."

        return None


class UsageSummary(BaseModel):
    """All quota checks for one subject."""

    subject_id: str
    plan_tier: str
    metrics: list[QuotaCheck]

    def get(self, metric: Metric) -> Optional[QuotaCheck]:
        """Get the quota check for a metric, if present."""
        for check in self.metrics:
            if check.metric == metric:
                return check
        return None


class DailyUsage(BaseModel):
    """Counter value for a single day."""

    day: date
    count: int


class UsageTotals(BaseModel):
    """Summed usage per metric over a trailing window."""

    subject_id: str
    since: date
    until: date
    totals: dict[Metric, int]


class AutomationUsageCounter(BaseModel):
    """One (subject, automation, metric, day) activity row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    subject_id: str
    automation_id: str
    metric: str
    period_key: str
    count: int
    created_at: datetime
    updated_at: datetime


class AutomationUsage(BaseModel):
    """Activity attributed to one automation over a trailing window."""

    automation_id: str
    totals: dict[Metric, int]
    total: int


class AutomationDailyActivity(BaseModel):
    """Activity across all of a subject's automations on one day."""

    day: date
    totals: dict[Metric, int]
