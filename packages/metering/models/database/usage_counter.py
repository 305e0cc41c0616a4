"""
Database entity for usage counters.
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


class UsageCounterEntity(Base):
    """
    Usage counter database entity.

    Exactly one row per (subject_id, metric, period_key). Rows are created by
    the first event of a period and never deleted, so old periods remain
    available for analytics.
    """

    __tablename__ = "usage_counters"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)

    # Slide user id (opaque string owned by account management)
    subject_id = Column(String(255), nullable=False, index=True)

    metric = Column(String(50), nullable=False)  # DM_SENT, COMMENT_REPLIED, ...

    # ISO date (YYYY-MM-DD) for daily windows, "lifetime" for all-time windows
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
        UniqueConstraint("subject_id", "metric", "period_key"),
        CheckConstraint("count >= 0", name="count_non_negative"),
        Index("idx_usage_counters_subject_metric", "subject_id", "metric"),
    )
