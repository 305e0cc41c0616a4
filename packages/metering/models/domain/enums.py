"""
Metering enums - closed sets for plan tiers, metrics and metering policy.
"""

from enum import Enum


class PlanTier(str, Enum):
    """
    Subscription plan tiers.

    New users start on FREE; a completed checkout moves them to PRO and a
    cancelled subscription drops them back to FREE.
    """

    FREE = "FREE"
    PRO = "PRO"


class Metric(str, Enum):
    """Countable event types subject to a plan limit."""

    DM_SENT = "DM_SENT"  # Automated DM delivered
    COMMENT_REPLIED = "COMMENT_REPLIED"  # Automated public comment reply
    AUTOMATION_CREATED = "AUTOMATION_CREATED"
    SMART_AI_REPLY = "SMART_AI_REPLY"  # AI generated reply (Smart AI listener)


class MeteringWindow(str, Enum):
    """Time window over which a metric's count resets."""

    DAILY = "daily"
    LIFETIME = "lifetime"


class FailurePolicy(str, Enum):
    """
    What to do when the counter store cannot be reached.

    FAIL_CLOSED denies the action (hard paid-feature gates).
    FAIL_OPEN allows it and logs for reconciliation (advisory metrics).
    """

    FAIL_CLOSED = "fail_closed"
    FAIL_OPEN = "fail_open"


class RecordStatus(str, Enum):
    """Outcome of gating one metered event."""

    ADMITTED = "admitted"
    DENIED = "denied"
    STORE_UNAVAILABLE = "store_unavailable"
