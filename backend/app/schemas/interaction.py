"""Schemas for client interactions."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.interaction import InteractionType


class InteractionCreate(BaseModel):
    client_id: str
    type: InteractionType
    subject: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = None


class InteractionRead(InteractionCreate):
    id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
