"""Metering providers."""
