"""Payments received against a subscription."""

from __future__ import annotations


from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID, new_guid


class Payment(Base):
    """A payment covering one reference month of a subscription."""

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(
            "reference_month >= 1 AND reference_month <= 12",
            name="ck_payments_reference_month_range",
        ),
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )

    id = Column("payment_id", GUID(), primary_key=True, default=new_guid)
    subscription_id = Column(
        GUID(),
        ForeignKey("subscriptions.subscription_id", ondelete="CASCADE"),
        nullable=False,
    )
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    reference_month = Column(Integer, nullable=False)
    reference_year = Column(Integer, nullable=False)
    receipt_file_id = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    subscription = relationship("Subscription", back_populates="payments")


Index("payments_subscription_date_idx", Payment.subscription_id, Payment.payment_date)
