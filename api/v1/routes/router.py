from fastapi import APIRouter

from api.v1.routes import (
    health,
)
from packages.metering.routes import metering, plans

api_router = APIRouter()

# Health check (no auth required)
api_router.include_router(health.router, prefix="/health", tags=["health"])

# Plans (no auth - public pricing info)
api_router.include_router(plans.router, prefix="/metering/plans", tags=["metering"])

# Metering (called by the webhook workers and the dashboard backend)
api_router.include_router(metering.router, prefix="/metering", tags=["metering"])
