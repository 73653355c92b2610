"""Router for client interactions."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import InteractionService, InteractionServiceError

router = APIRouter()


@router.get("/", response_model=list[schemas.InteractionRead])
def list_interactions(
    client_id: Optional[str] = Query(None, description="Only interactions with this client"),
    db: Session = Depends(get_db),
) -> list[schemas.InteractionRead]:
    return InteractionService.list_interactions(db, client_id=client_id)


@router.post("/", response_model=schemas.InteractionRead, status_code=status.HTTP_201_CREATED)
def create_interaction(
    interaction_in: schemas.InteractionCreate, db: Session = Depends(get_db)
) -> schemas.InteractionRead:
    try:
        return InteractionService.create_interaction(db, interaction_in)
    except InteractionServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
