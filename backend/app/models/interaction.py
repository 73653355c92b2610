"""Model recording contact history with a client."""

from __future__ import annotations

import enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import relationship

from ..database import Base
from ..db_types import GUID, new_guid, string_enum


class InteractionType(str, enum.Enum):
    EMAIL = "email"
    CALL = "call"
    MEETING = "meeting"
    WHATSAPP = "whatsapp"
    PROPOSAL = "proposal"


class Interaction(Base):
    """A single touchpoint (call, meeting, message) with a client."""

    __tablename__ = "interactions"

    id = Column("interaction_id", GUID(), primary_key=True, default=new_guid)
    client_id = Column(
        GUID(),
        ForeignKey("clients.client_id", ondelete="CASCADE"),
        nullable=False,
    )
    type = Column(string_enum(InteractionType, "interaction_type_enum"), nullable=False)
    subject = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    client = relationship("Client", back_populates="interactions")


Index("interactions_client_created_idx", Interaction.client_id, Interaction.created_at)
