"""Schemas for dashboard analytics snapshots."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class AnalyticsBase(BaseModel):
    date: datetime
    mrr: Decimal = Field(default=Decimal("0"), ge=0)
    churn_rate: float = Field(default=0, ge=0, le=100)
    avg_lifetime_value: Decimal = Field(default=Decimal("0"), ge=0)
    active_projects: int = Field(default=0, ge=0)
    total_revenue: Decimal = Field(default=Decimal("0"), ge=0)


class AnalyticsCreate(AnalyticsBase):
    pass


class AnalyticsRead(AnalyticsBase):
    id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
