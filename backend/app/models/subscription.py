"""Model definitions for recurring client subscriptions.

Billing dates are derived from ``billing_day`` at read time and are
deliberately not stored here.
"""

from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID, new_guid, string_enum


class SubscriptionStatus(str, enum.Enum):
    """Lifecycle status values for a subscription."""

    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class Subscription(Base):
    """A monthly recurring charge agreed with a client."""

    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint(
            "billing_day >= 1 AND billing_day <= 31",
            name="ck_subscriptions_billing_day_range",
        ),
        CheckConstraint("amount >= 0", name="ck_subscriptions_amount_non_negative"),
    )

    id = Column("subscription_id", GUID(), primary_key=True, default=new_guid)
    client_id = Column(
        GUID(),
        ForeignKey("clients.client_id", ondelete="CASCADE"),
        nullable=False,
    )
    billing_day = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(
        string_enum(SubscriptionStatus, "subscription_status_enum"),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    client = relationship("Client", back_populates="subscriptions")
    services = relationship(
        "SubscriptionService",
        back_populates="subscription",
        order_by="SubscriptionService.order",
    )
    payments = relationship(
        "Payment",
        back_populates="subscription",
        order_by="Payment.payment_date.desc()",
    )


class SubscriptionService(Base):
    """Checklist item describing a deliverable included in a subscription."""

    __tablename__ = "subscription_services"

    id = Column("subscription_service_id", GUID(), primary_key=True, default=new_guid)
    subscription_id = Column(
        GUID(),
        ForeignKey("subscriptions.subscription_id", ondelete="CASCADE"),
        nullable=False,
    )
    description = Column(Text, nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False, server_default="0")
    order = Column("order", Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    subscription = relationship("Subscription", back_populates="services")


Index("subscriptions_client_idx", Subscription.client_id)
Index("subscriptions_status_idx", Subscription.status)
Index(
    "subscription_services_subscription_order_idx",
    SubscriptionService.subscription_id,
    SubscriptionService.order,
)
