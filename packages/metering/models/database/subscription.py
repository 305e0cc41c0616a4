"""
Database entity for subscriptions.
"""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class SubscriptionEntity(Base):
    """
    Subject subscription database entity.

    One row per subject. Subjects without a row are on the FREE plan.
    """

    __tablename__ = "subscriptions"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    subject_id = Column(String(255), nullable=False, unique=True, index=True)

    plan = Column(String(50), nullable=False, server_default="FREE")  # FREE, PRO

    # Payment provider customer id, set when a checkout completes
    customer_id = Column(String(255), nullable=True, unique=True, index=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
