"""Business logic for client interactions."""

from __future__ import annotations

from sqlalchemy.orm import Session

from .. import models, schemas


class InteractionServiceError(Exception):
    """Raised when an interaction cannot be recorded."""


class InteractionService:
    @staticmethod
    def list_interactions(db: Session, *, client_id: str | None = None) -> list[models.Interaction]:
        query = db.query(models.Interaction)
        if client_id is not None:
            query = query.filter(models.Interaction.client_id == client_id)
        return query.order_by(models.Interaction.created_at.desc()).all()

    @staticmethod
    def create_interaction(
        db: Session, data: schemas.InteractionCreate
    ) -> models.Interaction:
        client = db.query(models.Client).filter(models.Client.id == data.client_id).first()
        if client is None:
            raise InteractionServiceError("Client not found for interaction.")
        interaction = models.Interaction(**data.model_dump())
        db.add(interaction)
        db.commit()
        db.refresh(interaction)
        return interaction
