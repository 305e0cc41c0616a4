"""
Domain model for metering periods.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from packages.metering.models.domain.enums import MeteringWindow

LIFETIME_PERIOD_KEY = "lifetime"


class Period(BaseModel):
    """
    Half-open metering window [start, end).

    The key is what counters are stored under: the ISO date of the window
    start for daily windows, "lifetime" for the single all-time window.
    """

    model_config = ConfigDict(frozen=True)

    window: MeteringWindow
    key: str
    start: Optional[datetime] = None  # None for lifetime
    end: Optional[datetime] = None  # None for lifetime

    def contains(self, moment: datetime) -> bool:
        """Check whether a timezone-aware moment falls inside this period."""
        if self.start is None or self.end is None:
            return True
        return self.start <= moment < self.end
