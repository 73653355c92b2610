"""Router containing CRUD operations for clients."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import (
    ClientService,
    ClientServiceError,
    DuplicateClientEmailError,
    InteractionService,
    ProjectService,
)

router = APIRouter()


def _get_client_or_404(db: Session, client_id: str):
    client = ClientService.get_client(db, client_id)
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return client


@router.get("/", response_model=list[schemas.ClientWithStats])
def list_clients(db: Session = Depends(get_db)) -> list[schemas.ClientWithStats]:
    """Return every client with its project and subscription figures."""
    return ClientService.list_clients_with_stats(db)


@router.get("/{client_id}", response_model=schemas.ClientRead)
def get_client(client_id: str, db: Session = Depends(get_db)) -> schemas.ClientRead:
    """Retrieve a single client by its identifier."""
    return _get_client_or_404(db, client_id)


@router.post("/", response_model=schemas.ClientRead, status_code=status.HTTP_201_CREATED)
def create_client(
    client_in: schemas.ClientCreate,
    db: Session = Depends(get_db),
) -> schemas.ClientRead:
    """Create a new client record."""
    try:
        return ClientService.create_client(db, client_in)
    except DuplicateClientEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.patch("/{client_id}", response_model=schemas.ClientRead)
def update_client(
    client_id: str,
    client_in: schemas.ClientUpdate,
    db: Session = Depends(get_db),
) -> schemas.ClientRead:
    """Update a client's information."""
    client = _get_client_or_404(db, client_id)
    try:
        return ClientService.update_client(db, client, client_in)
    except DuplicateClientEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ClientServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(client_id: str, db: Session = Depends(get_db)) -> None:
    """Delete a client together with its projects, subscriptions and alerts."""
    client = _get_client_or_404(db, client_id)
    ClientService.delete_client(db, client)


@router.get("/{client_id}/projects", response_model=list[schemas.ProjectWithClient])
def list_client_projects(
    client_id: str, db: Session = Depends(get_db)
) -> list[schemas.ProjectWithClient]:
    _get_client_or_404(db, client_id)
    now = datetime.now(timezone.utc)
    return [
        ProjectService.to_listing(project, now)
        for project in ProjectService.list_for_client(db, client_id)
    ]


@router.get("/{client_id}/interactions", response_model=list[schemas.InteractionRead])
def list_client_interactions(
    client_id: str, db: Session = Depends(get_db)
) -> list[schemas.InteractionRead]:
    _get_client_or_404(db, client_id)
    return InteractionService.list_interactions(db, client_id=client_id)
