"""Pydantic schemas for the client resources."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.client import ClientStatus, UpsellPotential


class ClientBase(BaseModel):
    """Attributes shared by create and read operations."""

    name: str = Field(..., min_length=1, max_length=200)
    company: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: Optional[str] = Field(default=None, max_length=50)
    source: str = Field(..., min_length=1, max_length=100)
    sector: str = Field(..., min_length=1, max_length=100)
    status: ClientStatus = ClientStatus.ACTIVE
    nps: Optional[float] = None
    lifetime_value: Decimal = Field(default=Decimal("0"), ge=0)
    upsell_potential: UpsellPotential = UpsellPotential.MEDIUM


class ClientCreate(ClientBase):
    """Schema used when creating a client."""


class ClientUpdate(BaseModel):
    """Partial update applied through PATCH."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    company: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[str] = Field(
        default=None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$"
    )
    phone: Optional[str] = Field(default=None, max_length=50)
    source: Optional[str] = Field(default=None, min_length=1, max_length=100)
    sector: Optional[str] = Field(default=None, min_length=1, max_length=100)
    status: Optional[ClientStatus] = None
    nps: Optional[float] = None
    lifetime_value: Optional[Decimal] = Field(default=None, ge=0)
    upsell_potential: Optional[UpsellPotential] = None


class ClientRead(ClientBase):
    """Schema used when returning client data."""

    id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientWithStats(ClientRead):
    """Client row enriched with portfolio figures for the client list."""

    project_count: int = Field(default=0, ge=0)
    total_value: Decimal = Field(default=Decimal("0"))
    has_active_subscription: bool = False
    last_interaction_at: Optional[datetime] = None
