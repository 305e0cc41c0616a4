"""Metering services."""

from packages.metering.services.event_recorder import EventRecorder
from packages.metering.services.plan_registry import PlanRegistry, get_plan_registry
from packages.metering.services.quota_service import QuotaService
from packages.metering.services.subscription_service import SubscriptionService
from packages.metering.services.usage_service import UsageService

__all__ = [
    "EventRecorder",
    "PlanRegistry",
    "get_plan_registry",
    "QuotaService",
    "SubscriptionService",
    "UsageService",
]
