"""Pydantic schemas for subscriptions, their checklist and payments."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.subscription import SubscriptionStatus
from .client import ClientRead


class SubscriptionServiceCreate(BaseModel):
    """Checklist item supplied when creating or extending a subscription."""

    description: str = Field(..., min_length=1)
    is_completed: bool = False
    order: int = Field(default=0, ge=0)


class SubscriptionServiceUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1)
    is_completed: Optional[bool] = None
    order: Optional[int] = Field(default=None, ge=0)


class SubscriptionServiceRead(SubscriptionServiceCreate):
    id: str
    subscription_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_date: date
    reference_month: int = Field(..., ge=1, le=12)
    reference_year: int = Field(..., ge=2000, le=2100)
    receipt_file_id: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None


class PaymentRead(PaymentCreate):
    id: str
    subscription_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionBase(BaseModel):
    billing_day: int = Field(..., ge=1, le=31)
    amount: Decimal = Field(..., ge=0)
    notes: Optional[str] = None
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE


class SubscriptionCreate(SubscriptionBase):
    client_id: str
    services: list[SubscriptionServiceCreate] = Field(default_factory=list)


class SubscriptionUpdate(BaseModel):
    """Partial update; billing dates are never accepted because they are derived."""

    billing_day: Optional[int] = Field(default=None, ge=1, le=31)
    amount: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    status: Optional[SubscriptionStatus] = None


class SubscriptionRead(SubscriptionBase):
    """Stored subscription columns only."""

    # Rows written before the range check are still readable.
    billing_day: int
    id: str
    client_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionWithClient(SubscriptionRead):
    """Subscription enriched with its client, checklist and billing snapshot.

    ``next_billing_date`` is always the next occurrence after today, so for a
    valid ``billing_day`` ``billing_status`` is ``upcoming`` and ``is_overdue``
    is false. A corrupt ``billing_day`` shows up as ``invalid``.
    """

    client: ClientRead
    services: list[SubscriptionServiceRead] = Field(default_factory=list)
    next_billing_date: Optional[date] = None
    billing_status: Literal["upcoming", "overdue", "invalid"]
    is_overdue: bool = False
    last_payment: Optional[PaymentRead] = None
    completed_services: int = Field(default=0, ge=0)
    total_services: int = Field(default=0, ge=0)


class SubscriptionWithDetails(SubscriptionWithClient):
    payments: list[PaymentRead] = Field(default_factory=list)


class SubscriptionSummary(BaseModel):
    """Portfolio figures for the subscriptions dashboard.

    ``invalid_count`` counts active subscriptions whose billing day cannot be
    resolved. There is no overdue figure: next billing dates are never in
    the past.
    """

    mrr: Decimal
    active_count: int = Field(..., ge=0)
    paused_count: int = Field(..., ge=0)
    cancelled_count: int = Field(..., ge=0)
    invalid_count: int = Field(..., ge=0)
