"""Domain models for metering."""

from packages.metering.models.domain.enums import (
    FailurePolicy,
    MeteringWindow,
    Metric,
    PlanTier,
    RecordStatus,
)
from packages.metering.models.domain.entitlement import (
    UNLIMITED,
    Limit,
    EntitlementDecision,
    RecordResult,
    StoreUnavailableOutcome,
    GateOutcome,
    IncrementResult,
)
from packages.metering.models.domain.period import Period, LIFETIME_PERIOD_KEY
from packages.metering.models.domain.plans import MetricPolicy, PlanInfo, PlansResponse
from packages.metering.models.domain.subscription import Subscription
from packages.metering.models.domain.usage import (
    AutomationDailyActivity,
    AutomationUsage,
    AutomationUsageCounter,
    DailyUsage,
    QuotaCheck,
    UsageCounter,
    UsageSummary,
    UsageTotals,
)

__all__ = [
    "FailurePolicy",
    "MeteringWindow",
    "Metric",
    "PlanTier",
    "RecordStatus",
    "UNLIMITED",
    "Limit",
    "EntitlementDecision",
    "RecordResult",
    "StoreUnavailableOutcome",
    "GateOutcome",
    "IncrementResult",
    "Period",
    "LIFETIME_PERIOD_KEY",
    "MetricPolicy",
    "PlanInfo",
    "PlansResponse",
    "Subscription",
    "AutomationDailyActivity",
    "AutomationUsage",
    "AutomationUsageCounter",
    "DailyUsage",
    "QuotaCheck",
    "UsageCounter",
    "UsageSummary",
    "UsageTotals",
]
