"""Metering repositories."""

from packages.metering.repositories.automation_usage_repository import (
    AutomationUsageRepository,
)
from packages.metering.repositories.subscription_repository import (
    SubscriptionRepository,
)
from packages.metering.repositories.usage_counter_repository import (
    UsageCounterRepository,
)

__all__ = [
    "AutomationUsageRepository",
    "SubscriptionRepository",
    "UsageCounterRepository",
]
