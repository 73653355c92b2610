"""Business logic for client records."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models, schemas
from .alerts import AlertService

LOGGER = logging.getLogger(__name__)


class ClientServiceError(Exception):
    """Base class for client related errors."""


class DuplicateClientEmailError(ClientServiceError):
    """Raised when another client already uses the e-mail address."""


class ClientService:
    """CRUD operations for clients, including the cascading delete."""

    @staticmethod
    def list_clients(db: Session) -> list[models.Client]:
        return db.query(models.Client).order_by(models.Client.created_at.desc()).all()

    @staticmethod
    def list_clients_with_stats(db: Session) -> list[schemas.ClientWithStats]:
        clients = ClientService.list_clients(db)

        project_rows = (
            db.query(
                models.Project.client_id,
                func.count(models.Project.id),
                func.coalesce(func.sum(models.Project.value), 0),
            )
            .group_by(models.Project.client_id)
            .all()
        )
        project_stats = {
            client_id: (count, Decimal(str(total))) for client_id, count, total in project_rows
        }

        active_client_ids = {
            client_id
            for (client_id,) in db.query(models.Subscription.client_id)
            .filter(models.Subscription.status == models.SubscriptionStatus.ACTIVE)
            .distinct()
        }

        last_interactions = dict(
            db.query(models.Interaction.client_id, func.max(models.Interaction.created_at))
            .group_by(models.Interaction.client_id)
            .all()
        )

        results = []
        for client in clients:
            count, total = project_stats.get(client.id, (0, Decimal("0")))
            base = schemas.ClientRead.model_validate(client).model_dump()
            results.append(
                schemas.ClientWithStats(
                    **base,
                    project_count=count,
                    total_value=total,
                    has_active_subscription=client.id in active_client_ids,
                    last_interaction_at=last_interactions.get(client.id),
                )
            )
        return results

    @staticmethod
    def get_client(db: Session, client_id: str) -> Optional[models.Client]:
        return db.query(models.Client).filter(models.Client.id == client_id).first()

    @staticmethod
    def _commit_or_raise(db: Session) -> None:
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise DuplicateClientEmailError("A client with this e-mail already exists.") from exc

    @staticmethod
    def create_client(db: Session, data: schemas.ClientCreate) -> models.Client:
        client = models.Client(**data.model_dump())
        db.add(client)
        ClientService._commit_or_raise(db)
        db.refresh(client)
        return client

    @staticmethod
    def update_client(
        db: Session, client: models.Client, data: schemas.ClientUpdate
    ) -> models.Client:
        update_data = data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field not in {"phone", "nps"}:
                raise ClientServiceError(f"{field} cannot be null")
            setattr(client, field, value)
        db.add(client)
        ClientService._commit_or_raise(db)
        db.refresh(client)
        return client

    @staticmethod
    def delete_client(db: Session, client: models.Client) -> None:
        """Delete a client and everything that references it.

        Dependents are removed explicitly, leaves first, in one transaction so
        the operation does not depend on database-level cascades.
        """

        client_id = client.id
        subscription_ids = [
            row[0]
            for row in db.query(models.Subscription.id).filter(
                models.Subscription.client_id == client_id
            )
        ]
        project_ids = [
            row[0]
            for row in db.query(models.Project.id).filter(models.Project.client_id == client_id)
        ]

        try:
            if subscription_ids:
                db.query(models.Payment).filter(
                    models.Payment.subscription_id.in_(subscription_ids)
                ).delete(synchronize_session=False)
                db.query(models.SubscriptionService).filter(
                    models.SubscriptionService.subscription_id.in_(subscription_ids)
                ).delete(synchronize_session=False)
                db.query(models.Subscription).filter(
                    models.Subscription.id.in_(subscription_ids)
                ).delete(synchronize_session=False)
            if project_ids:
                db.query(models.ProjectCost).filter(
                    models.ProjectCost.project_id.in_(project_ids)
                ).delete(synchronize_session=False)
                db.query(models.Project).filter(models.Project.id.in_(project_ids)).delete(
                    synchronize_session=False
                )
            db.query(models.Interaction).filter(
                models.Interaction.client_id == client_id
            ).delete(synchronize_session=False)

            AlertService.delete_for_entities(db, models.AlertEntityType.PROJECT, project_ids)
            AlertService.delete_for_entities(
                db, models.AlertEntityType.SUBSCRIPTION, subscription_ids
            )
            AlertService.delete_for_entities(db, models.AlertEntityType.CLIENT, [client_id])

            db.query(models.Client).filter(models.Client.id == client_id).delete(
                synchronize_session=False
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.expire_all()
        LOGGER.info(
            "Deleted client %s with %s subscriptions and %s projects",
            client_id,
            len(subscription_ids),
            len(project_ids),
        )
