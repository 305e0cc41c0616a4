from packages.metering.models.database.automation_usage import AutomationUsageEntity
from packages.metering.models.database.subscription import SubscriptionEntity
from packages.metering.models.database.usage_counter import UsageCounterEntity

__all__ = [
    "AutomationUsageEntity",
    "SubscriptionEntity",
    "UsageCounterEntity",
]
