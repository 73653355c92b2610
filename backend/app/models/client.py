"""SQLAlchemy model definitions for clients."""

from __future__ import annotations

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Index,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID, new_guid, string_enum


class ClientStatus(str, enum.Enum):
    """Commercial status of a client."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PROSPECT = "prospect"


class UpsellPotential(str, enum.Enum):
    """Qualitative estimate of additional revenue available from a client."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Client(Base):
    """Represents a client firm stored in the database."""

    __tablename__ = "clients"
    __table_args__ = (
        CheckConstraint("lifetime_value >= 0", name="ck_clients_lifetime_value_non_negative"),
    )

    id = Column("client_id", GUID(), primary_key=True, default=new_guid)
    name = Column(String(200), nullable=False)
    company = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    source = Column(String(100), nullable=False)
    sector = Column(String(100), nullable=False)
    status = Column(
        string_enum(ClientStatus, "client_status_enum"),
        nullable=False,
        default=ClientStatus.ACTIVE,
    )
    nps = Column(Float, nullable=True)
    lifetime_value = Column(Numeric(12, 2), nullable=False, default=0)
    upsell_potential = Column(
        string_enum(UpsellPotential, "client_upsell_potential_enum"),
        nullable=False,
        default=UpsellPotential.MEDIUM,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    projects = relationship("Project", back_populates="client")
    subscriptions = relationship("Subscription", back_populates="client")
    interactions = relationship("Interaction", back_populates="client")


Index("clients_status_idx", Client.status)
