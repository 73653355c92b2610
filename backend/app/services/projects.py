"""Business logic for projects and project costs."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from .alerts import AlertService

LOGGER = logging.getLogger(__name__)


class ProjectServiceError(Exception):
    """Raised when a project operation is not allowed."""


def ensure_aware(value: datetime) -> datetime:
    """Treat naive timestamps (as returned by SQLite) as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_project_overdue(project: models.Project, now: datetime) -> bool:
    """A project is overdue when its due date has passed and it is still open."""

    if project.status in models.TERMINAL_PROJECT_STATUSES:
        return False
    if project.due_date is None:
        return False
    return ensure_aware(project.due_date) < ensure_aware(now)


def total_costs(project: models.Project) -> Decimal:
    return sum((Decimal(cost.amount) for cost in project.costs), Decimal("0"))


def project_profit(project: models.Project) -> Decimal:
    return Decimal(project.value) - total_costs(project)


class ProjectService:
    """CRUD operations for projects and their costs."""

    @staticmethod
    def list_projects(db: Session) -> list[models.Project]:
        return (
            db.query(models.Project)
            .options(selectinload(models.Project.client))
            .order_by(models.Project.created_at.desc())
            .all()
        )

    @staticmethod
    def list_open_projects(db: Session) -> list[models.Project]:
        return (
            db.query(models.Project)
            .options(selectinload(models.Project.client))
            .filter(models.Project.status.notin_(list(models.TERMINAL_PROJECT_STATUSES)))
            .order_by(models.Project.due_date)
            .all()
        )

    @staticmethod
    def list_for_client(db: Session, client_id: str) -> list[models.Project]:
        return (
            db.query(models.Project)
            .filter(models.Project.client_id == client_id)
            .order_by(models.Project.created_at.desc())
            .all()
        )

    @staticmethod
    def get_project(db: Session, project_id: str) -> Optional[models.Project]:
        return (
            db.query(models.Project)
            .options(selectinload(models.Project.client), selectinload(models.Project.costs))
            .filter(models.Project.id == project_id)
            .first()
        )

    @staticmethod
    def to_listing(project: models.Project, now: datetime) -> schemas.ProjectWithClient:
        base = schemas.ProjectRead.model_validate(project).model_dump()
        client = schemas.ClientRead.model_validate(project.client) if project.client else None
        return schemas.ProjectWithClient(
            **base, client=client, is_overdue=is_project_overdue(project, now)
        )

    @staticmethod
    def to_detail(project: models.Project, now: datetime) -> schemas.ProjectDetail:
        listing = ProjectService.to_listing(project, now)
        return schemas.ProjectDetail(
            **listing.model_dump(exclude={"client"}),
            client=listing.client,
            costs=[schemas.ProjectCostRead.model_validate(cost) for cost in project.costs],
            total_costs=total_costs(project),
            profit=project_profit(project),
        )

    @staticmethod
    def create_project(db: Session, data: schemas.ProjectCreate) -> models.Project:
        client = db.query(models.Client).filter(models.Client.id == data.client_id).first()
        if client is None:
            raise ProjectServiceError("Client not found for project.")
        project = models.Project(**data.model_dump())
        db.add(project)
        db.commit()
        db.refresh(project)
        return project

    @staticmethod
    def update_project(
        db: Session, project: models.Project, data: schemas.ProjectUpdate
    ) -> models.Project:
        update_data = data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field != "estimated_hours":
                raise ProjectServiceError(f"{field} cannot be null")
        for field, value in update_data.items():
            setattr(project, field, value)
        if ensure_aware(project.due_date) < ensure_aware(project.start_date):
            db.rollback()
            raise ProjectServiceError("due_date cannot be before start_date")
        db.add(project)
        db.commit()
        db.refresh(project)
        return project

    @staticmethod
    def delete_project(db: Session, project: models.Project) -> None:
        project_id = project.id
        for cost in list(project.costs):
            db.delete(cost)
        AlertService.delete_for_entities(db, models.AlertEntityType.PROJECT, [project_id])
        db.delete(project)
        db.commit()
        LOGGER.info("Deleted project %s", project_id)

    @staticmethod
    def list_costs(db: Session, project_id: str) -> list[models.ProjectCost]:
        return (
            db.query(models.ProjectCost)
            .filter(models.ProjectCost.project_id == project_id)
            .order_by(models.ProjectCost.cost_date.desc())
            .all()
        )

    @staticmethod
    def get_cost(db: Session, project_id: str, cost_id: str) -> Optional[models.ProjectCost]:
        return (
            db.query(models.ProjectCost)
            .filter(models.ProjectCost.project_id == project_id)
            .filter(models.ProjectCost.id == cost_id)
            .first()
        )

    @staticmethod
    def create_cost(
        db: Session, project: models.Project, data: schemas.ProjectCostCreate
    ) -> models.ProjectCost:
        cost = models.ProjectCost(project_id=project.id, **data.model_dump())
        db.add(cost)
        db.commit()
        db.refresh(cost)
        return cost

    @staticmethod
    def update_cost(
        db: Session, cost: models.ProjectCost, data: schemas.ProjectCostUpdate
    ) -> models.ProjectCost:
        update_data = data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field not in {"category", "notes"}:
                raise ProjectServiceError(f"{field} cannot be null")
            setattr(cost, field, value)
        db.add(cost)
        db.commit()
        db.refresh(cost)
        return cost

    @staticmethod
    def delete_cost(db: Session, cost: models.ProjectCost) -> None:
        db.delete(cost)
        db.commit()
