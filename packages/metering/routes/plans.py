"""
Plans API routes.

Public endpoint for retrieving the plan catalog.
"""

from fastapi import APIRouter

from packages.metering.models.domain.plans import PlansResponse
from packages.metering.services.plan_registry import get_plan_registry

router = APIRouter()


@router.get("", response_model=PlansResponse)
async def get_plans():
    """
    Get every plan tier with its per-metric limits.

    This endpoint is public (no auth required) for pricing pages.
    """
    return PlansResponse(plans=get_plan_registry().plans())
