"""Dated snapshots of the dashboard's headline figures."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, Float, Index, Integer, Numeric, func

from ..database import Base
from ..db_types import GUID, new_guid


class AnalyticsSnapshot(Base):
    """Recurring revenue, churn and delivery load as of ``date``."""

    __tablename__ = "analytics"
    __table_args__ = (
        CheckConstraint(
            "churn_rate >= 0 AND churn_rate <= 100", name="ck_analytics_churn_rate_range"
        ),
        CheckConstraint("active_projects >= 0", name="ck_analytics_active_projects_positive"),
    )

    id = Column("analytics_id", GUID(), primary_key=True, default=new_guid)
    date = Column(DateTime(timezone=True), nullable=False)
    mrr = Column(Numeric(12, 2), nullable=False, default=0)
    # Percentage of subscriptions that are cancelled, 0-100.
    churn_rate = Column(Float, nullable=False, default=0)
    avg_lifetime_value = Column(Numeric(12, 2), nullable=False, default=0)
    active_projects = Column(Integer, nullable=False, default=0)
    total_revenue = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


Index("analytics_date_idx", AnalyticsSnapshot.date)
