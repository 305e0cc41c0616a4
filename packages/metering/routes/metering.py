"""
Metering API routes.

Endpoints for recording metered events, reading quotas and usage history,
and applying plan changes from the payment provider.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from common.core.otel_axiom_exporter import get_logger
from packages.metering.exceptions import (
    InvalidPeriodError,
    MeteringError,
    StoreUnavailableError,
    UnknownMetricError,
    UnknownPlanTierError,
)
from packages.metering.models.domain.usage import QuotaCheck, UsageSummary
from packages.metering.models.schemas.metering import (
    AutomationUsageResponse,
    ChangePlanRequest,
    RecordEventRequest,
    RecordEventResponse,
    SubscriptionResponse,
    UsageHistoryResponse,
)
from packages.metering.services.quota_service import QuotaService
from packages.metering.services.subscription_service import SubscriptionService
from packages.metering.services.usage_service import UsageService
from packages.metering.services.plan_registry import parse_metric

logger = get_logger(__name__)

router = APIRouter()


def get_quota_service() -> QuotaService:
    return QuotaService()


def get_subscription_service() -> SubscriptionService:
    return SubscriptionService()


def get_usage_service() -> UsageService:
    return UsageService()


def _to_http_exception(e: MeteringError) -> HTTPException:
    """Map a metering error to the HTTP status the API reports it with."""
    if isinstance(e, StoreUnavailableError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Usage tracking is temporarily unavailable. Please try again shortly.",
        )
    if isinstance(e, (UnknownMetricError, UnknownPlanTierError, InvalidPeriodError)):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Metering error"
    )


# ============================================================================
# Events
# ============================================================================


@router.post("/subjects/{subject_id}/events", response_model=RecordEventResponse)
async def record_event(
    subject_id: str,
    request: RecordEventRequest,
    quota_service: QuotaService = Depends(get_quota_service),
    usage_service: UsageService = Depends(get_usage_service),
):
    """
    Record one metered event before the action runs.

    Returns 200 when the action may proceed, 429 when the subject's plan
    limit is reached, 503 when the counter store is down and the metric
    fails closed, and 422 for metrics outside the catalog or an occurred_at
    outside the metric's current period.

    Admitted events that name an automation are also attributed to it for
    per-automation analytics.
    """
    try:
        metric = parse_metric(request.metric)
        if request.occurred_at is not None:
            quota_service.validate_event_time(metric, request.occurred_at)
        outcome = await quota_service.enforce_event(
            subject_id, metric, now=request.occurred_at
        )
    except MeteringError as e:
        raise _to_http_exception(e)

    if request.automation_id is not None:
        try:
            await usage_service.record_automation_activity(
                subject_id, request.automation_id, metric, now=request.occurred_at
            )
        except StoreUnavailableError as e:
            # Analytics only; the event stays admitted
            logger.warning(
                f"Could not attribute {metric.value} to automation {request.automation_id}: {e}",
                extra={
                    "subject_id": subject_id,
                    "automation_id": request.automation_id,
                    "metric": metric.value,
                },
            )

    return RecordEventResponse.from_outcome(outcome)


# ============================================================================
# Quotas
# ============================================================================


@router.get("/subjects/{subject_id}/usage", response_model=UsageSummary)
async def get_usage_summary(
    subject_id: str,
    quota_service: QuotaService = Depends(get_quota_service),
):
    """
    Get current-period usage and limits for every metric.
    """
    try:
        return await quota_service.get_usage_summary(subject_id)
    except MeteringError as e:
        raise _to_http_exception(e)


@router.get("/subjects/{subject_id}/quota/{metric}", response_model=QuotaCheck)
async def get_quota(
    subject_id: str,
    metric: str,
    quota_service: QuotaService = Depends(get_quota_service),
):
    """
    Get a subject's quota for one metric without recording anything.
    """
    try:
        return await quota_service.check_quota(subject_id, metric)
    except MeteringError as e:
        raise _to_http_exception(e)


# ============================================================================
# History
# ============================================================================


@router.get("/subjects/{subject_id}/history", response_model=UsageHistoryResponse)
async def get_usage_history(
    subject_id: str,
    metric: Optional[str] = Query(default=None),
    days: Optional[int] = Query(default=None, ge=1, le=366),
    usage_service: UsageService = Depends(get_usage_service),
):
    """
    Get usage over the trailing window.

    Without a metric, returns per-metric totals. With one, returns that
    metric's day-by-day history.
    """
    try:
        if metric is None:
            totals = await usage_service.get_usage_totals(subject_id, days=days)
            return UsageHistoryResponse.from_totals(totals)

        parsed = parse_metric(metric)
        history = await usage_service.get_daily_history(subject_id, parsed, days=days)
    except MeteringError as e:
        raise _to_http_exception(e)

    return UsageHistoryResponse(
        subject_id=subject_id,
        since=history[0].day,
        until=history[-1].day,
        metric=parsed,
        days=history,
    )


@router.get(
    "/subjects/{subject_id}/automations/usage",
    response_model=AutomationUsageResponse,
)
async def get_automation_usage(
    subject_id: str,
    days: Optional[int] = Query(default=None, ge=1, le=366),
    usage_service: UsageService = Depends(get_usage_service),
):
    """
    Get activity per automation and per day over the trailing window.
    """
    try:
        since, until = usage_service.date_range(days=days)
        automations = await usage_service.get_automation_totals(
            subject_id, since=since
        )
        daily = await usage_service.get_automation_daily_activity(
            subject_id, since=since
        )
    except MeteringError as e:
        raise _to_http_exception(e)

    return AutomationUsageResponse(
        subject_id=subject_id,
        since=since,
        until=until,
        automations=automations,
        days=daily,
    )


# ============================================================================
# Plan changes
# ============================================================================


@router.put("/subjects/{subject_id}/plan", response_model=SubscriptionResponse)
async def change_plan(
    subject_id: str,
    request: ChangePlanRequest,
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """
    Move a subject to a plan tier.

    Called when a checkout completes. Existing counters are kept; the new
    limits apply to the next recorded event.
    """
    subscription = await subscription_service.change_plan(
        subject_id, request.tier, customer_id=request.customer_id
    )
    return SubscriptionResponse.from_subscription(subscription)


@router.post(
    "/customers/{customer_id}/downgrade", response_model=SubscriptionResponse
)
async def downgrade_customer(
    customer_id: str,
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """
    Move a payment provider customer back to FREE.

    Called when their subscription is cancelled.
    """
    subscription = await subscription_service.downgrade_customer(customer_id)
    if subscription is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No subscription found for this customer",
        )
    return SubscriptionResponse.from_subscription(subscription)
