"""
Domain models for entitlement decisions and recorded events.
"""

from typing import Literal, Union
from pydantic import BaseModel, ConfigDict

from packages.metering.models.domain.enums import FailurePolicy, RecordStatus

UNLIMITED = "unlimited"

# A plan limit: a non-negative count, or the unlimited sentinel
Limit = Union[int, Literal["unlimited"]]


class EntitlementDecision(BaseModel):
    """
    Result of comparing a counter against a plan limit.

    remaining is the unlimited sentinel whenever limit is, never a number.
    """

    model_config = ConfigDict(frozen=True)

    allowed: bool
    current_count: int
    limit: Limit
    remaining: Limit

    @property
    def is_unlimited(self) -> bool:
        return self.limit == UNLIMITED


class RecordResult(EntitlementDecision):
    """
    Decision for one metered event plus the counter value after it.

    new_count equals current_count on denial: a denied action is never charged.
    """

    status: Literal[RecordStatus.ADMITTED, RecordStatus.DENIED]
    subject_id: str
    metric: str
    plan_tier: str
    period_key: str
    new_count: int


class StoreUnavailableOutcome(BaseModel):
    """
    The counter store failed; allowed reflects the metric's failure policy.

    Kept as a separate shape so callers can tell an infrastructure failure
    from a quota denial.
    """

    model_config = ConfigDict(frozen=True)

    status: Literal[RecordStatus.STORE_UNAVAILABLE] = RecordStatus.STORE_UNAVAILABLE
    subject_id: str
    metric: str
    allowed: bool
    failure_policy: FailurePolicy
    detail: str


GateOutcome = Union[RecordResult, StoreUnavailableOutcome]


class IncrementResult(BaseModel):
    """What a counter store increment did."""

    model_config = ConfigDict(frozen=True)

    applied: bool
    count: int


__all__ = [
    "UNLIMITED",
    "Limit",
    "EntitlementDecision",
    "RecordResult",
    "StoreUnavailableOutcome",
    "GateOutcome",
    "IncrementResult",
]
