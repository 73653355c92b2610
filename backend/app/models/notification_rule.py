"""Rule definitions evaluated periodically to raise alerts."""

from __future__ import annotations

import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String, Text, func
from sqlalchemy.dialects.sqlite import JSON as SQLiteJSON

from ..database import Base
from ..db_types import GUID, new_guid


class RuleType(str, enum.Enum):
    """Rule types known to the evaluator.

    ``condition.type`` is stored as free text so that rules written for a type
    this build does not know are kept and reported instead of rejected.
    """

    PROJECT_DELAYED = "project_delayed"
    PAYMENT_PENDING = "payment_pending"
    UPSELL_OPPORTUNITY = "upsell_opportunity"


class NotificationRule(Base):
    """A named condition checked on every evaluation pass while active."""

    __tablename__ = "notification_rules"

    id = Column("rule_id", GUID(), primary_key=True, default=new_guid)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    condition = Column(JSON().with_variant(SQLiteJSON(), "sqlite"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default="1")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    @property
    def rule_type(self) -> str | None:
        condition = self.condition or {}
        if not isinstance(condition, dict):
            return None
        value = condition.get("type")
        return str(value) if value is not None else None


Index("notification_rules_active_idx", NotificationRule.is_active)
