"""
Domain models for subscriptions (subject -> plan tier).
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from packages.metering.models.domain.enums import PlanTier


class Subscription(BaseModel):
    """
    A subject's current plan.

    plan stays a plain string: rows written by older deployments may carry
    tiers this build does not know, and those must fail closed rather than
    fail to load.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    subject_id: str
    plan: str
    customer_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SubscriptionCreateModel(BaseModel):
    """Model for creating a subscription."""

    subject_id: str
    plan: PlanTier = PlanTier.FREE
    customer_id: Optional[str] = None
