"""
Database entity for per-automation activity counters.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class AutomationUsageEntity(Base):
    """
    Daily activity counter for one automation.

    Analytics only: these rows attribute admitted events to the automation
    that produced them and never take part in quota decisions.
    """

    __tablename__ = "automation_usage"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)

    subject_id = Column(String(255), nullable=False, index=True)
    automation_id = Column(String(255), nullable=False)
    metric = Column(String(50), nullable=False)

    # ISO date (YYYY-MM-DD) in the metering timezone
    period_key = Column(String(32), nullable=False)

    count = Column(Integer, nullable=False, server_default="0")

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("subject_id", "automation_id", "metric", "period_key"),
        CheckConstraint("count >= 0", name="count_non_negative"),
        Index("idx_automation_usage_subject_period", "subject_id", "period_key"),
    )
