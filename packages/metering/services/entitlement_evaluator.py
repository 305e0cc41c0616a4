"""
Pure entitlement decision: counter value vs plan limit.
"""

from packages.metering.models.domain.entitlement import (
    UNLIMITED,
    EntitlementDecision,
    Limit,
)


def evaluate(current_count: int, limit: Limit) -> EntitlementDecision:
    """
    Decide whether one more action is allowed.

    The upper bound is exclusive: with limit L a subject may perform L actions
    per period, so a count of L - 1 is allowed and a count of L is denied.

    Args:
        current_count: Counter value before the action
        limit: Plan limit, or UNLIMITED

    Raises:
        ValueError: current_count is negative
    """
    if current_count < 0:
        raise ValueError(f"Counter values are non-negative, got {current_count}")

    if limit == UNLIMITED:
        return EntitlementDecision(
            allowed=True,
            current_count=current_count,
            limit=UNLIMITED,
            remaining=UNLIMITED,
        )

    return EntitlementDecision(
        allowed=current_count < limit,
        current_count=current_count,
        limit=limit,
        remaining=max(0, limit - current_count),
    )
