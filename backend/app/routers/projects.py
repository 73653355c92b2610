"""Router for projects and their costs."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import ProjectService, ProjectServiceError

router = APIRouter()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _get_project_or_404(db: Session, project_id: str):
    project = ProjectService.get_project(db, project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


@router.get("/", response_model=list[schemas.ProjectWithClient])
def list_projects(db: Session = Depends(get_db)) -> list[schemas.ProjectWithClient]:
    """Return all projects with their client and overdue flag."""
    now = _now()
    return [ProjectService.to_listing(project, now) for project in ProjectService.list_projects(db)]


@router.post("/", response_model=schemas.ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: schemas.ProjectCreate, db: Session = Depends(get_db)
) -> schemas.ProjectRead:
    try:
        return ProjectService.create_project(db, project_in)
    except ProjectServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/{project_id}", response_model=schemas.ProjectDetail)
def get_project(project_id: str, db: Session = Depends(get_db)) -> schemas.ProjectDetail:
    """Return one project with its costs, total costs and profit."""
    project = _get_project_or_404(db, project_id)
    return ProjectService.to_detail(project, _now())


@router.patch("/{project_id}", response_model=schemas.ProjectRead)
def update_project(
    project_id: str,
    project_in: schemas.ProjectUpdate,
    db: Session = Depends(get_db),
) -> schemas.ProjectRead:
    project = _get_project_or_404(db, project_id)
    try:
        return ProjectService.update_project(db, project, project_in)
    except ProjectServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: str, db: Session = Depends(get_db)) -> None:
    project = _get_project_or_404(db, project_id)
    ProjectService.delete_project(db, project)


@router.get("/{project_id}/costs", response_model=list[schemas.ProjectCostRead])
def list_project_costs(
    project_id: str, db: Session = Depends(get_db)
) -> list[schemas.ProjectCostRead]:
    _get_project_or_404(db, project_id)
    return ProjectService.list_costs(db, project_id)


@router.post(
    "/{project_id}/costs",
    response_model=schemas.ProjectCostRead,
    status_code=status.HTTP_201_CREATED,
)
def create_project_cost(
    project_id: str,
    cost_in: schemas.ProjectCostCreate,
    db: Session = Depends(get_db),
) -> schemas.ProjectCostRead:
    project = _get_project_or_404(db, project_id)
    return ProjectService.create_cost(db, project, cost_in)


@router.patch("/{project_id}/costs/{cost_id}", response_model=schemas.ProjectCostRead)
def update_project_cost(
    project_id: str,
    cost_id: str,
    cost_in: schemas.ProjectCostUpdate,
    db: Session = Depends(get_db),
) -> schemas.ProjectCostRead:
    cost = ProjectService.get_cost(db, project_id, cost_id)
    if cost is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project cost not found")
    try:
        return ProjectService.update_cost(db, cost, cost_in)
    except ProjectServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/{project_id}/costs/{cost_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project_cost(project_id: str, cost_id: str, db: Session = Depends(get_db)) -> None:
    cost = ProjectService.get_cost(db, project_id, cost_id)
    if cost is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project cost not found")
    ProjectService.delete_cost(db, cost)
