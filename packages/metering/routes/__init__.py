"""Metering API routes."""

from packages.metering.routes import metering, plans

__all__ = ["metering", "plans"]
