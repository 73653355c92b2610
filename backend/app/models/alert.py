"""Persisted notifications raised by the notification rule evaluator."""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text, text

from ..database import Base
from ..db_types import GUID, new_guid, string_enum


class AlertType(str, enum.Enum):
    PROJECT_DELAYED = "project_delayed"
    PAYMENT_PENDING = "payment_pending"
    UPSELL_OPPORTUNITY = "upsell_opportunity"
    MILESTONE_DUE = "milestone_due"
    SUBSCRIPTION_DUE = "subscription_due"
    SUBSCRIPTION_OVERDUE = "subscription_overdue"


class AlertEntityType(str, enum.Enum):
    PROJECT = "project"
    CLIENT = "client"
    SUBSCRIPTION = "subscription"


class AlertPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Partial index predicates; SQLite stores booleans as integers.
UNREAD_PREDICATE_SQLITE = "is_read = 0"
UNREAD_PREDICATE_POSTGRESQL = "is_read = false"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Alert(Base):
    """A notification about one entity.

    At most one unread alert may exist per ``(entity_id, entity_type, type)``;
    the partial unique index below enforces it in the database.
    """

    __tablename__ = "alerts"

    id = Column("alert_id", GUID(), primary_key=True, default=new_guid)
    type = Column(string_enum(AlertType, "alert_type_enum"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    entity_id = Column(String(36), nullable=False)
    entity_type = Column(string_enum(AlertEntityType, "alert_entity_type_enum"), nullable=False)
    priority = Column(
        string_enum(AlertPriority, "alert_priority_enum"),
        nullable=False,
        default=AlertPriority.MEDIUM,
    )
    is_read = Column(Boolean, nullable=False, default=False, server_default="0")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


Index(
    "alerts_unread_entity_uidx",
    Alert.entity_id,
    Alert.entity_type,
    Alert.type,
    unique=True,
    sqlite_where=text(UNREAD_PREDICATE_SQLITE),
    postgresql_where=text(UNREAD_PREDICATE_POSTGRESQL),
)
Index("alerts_is_read_created_idx", Alert.is_read, Alert.created_at)
