"""Schemas for alerts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models.alert import AlertEntityType, AlertPriority, AlertType


class AlertRead(BaseModel):
    id: str
    type: AlertType
    title: str
    description: str
    entity_id: str
    entity_type: AlertEntityType
    priority: AlertPriority
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AlertListResponse(BaseModel):
    """One page of alert history, newest first."""

    items: list[AlertRead]
    total: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    skip: int = Field(..., ge=0)
