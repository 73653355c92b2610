"""Router for dashboard analytics snapshots."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import AnalyticsService, AnalyticsServiceError

router = APIRouter()


@router.get("/", response_model=Optional[schemas.AnalyticsRead])
def get_latest_analytics(db: Session = Depends(get_db)) -> Optional[schemas.AnalyticsRead]:
    """Return the most recent snapshot, or ``null`` before the first capture."""
    return AnalyticsService.get_latest(db)


@router.get("/history", response_model=list[schemas.AnalyticsRead])
def list_analytics(
    start: Optional[datetime] = Query(None, description="Earliest snapshot date"),
    end: Optional[datetime] = Query(None, description="Latest snapshot date"),
    db: Session = Depends(get_db),
) -> list[schemas.AnalyticsRead]:
    try:
        return AnalyticsService.list_snapshots(db, start=start, end=end)
    except AnalyticsServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/", response_model=schemas.AnalyticsRead, status_code=status.HTTP_201_CREATED)
def create_analytics(
    snapshot_in: schemas.AnalyticsCreate, db: Session = Depends(get_db)
) -> schemas.AnalyticsRead:
    return AnalyticsService.create_snapshot(db, snapshot_in)


@router.post(
    "/capture", response_model=schemas.AnalyticsRead, status_code=status.HTTP_201_CREATED
)
def capture_analytics(db: Session = Depends(get_db)) -> schemas.AnalyticsRead:
    """Compute a snapshot from current data and store it."""
    return AnalyticsService.capture_snapshot(db, datetime.now(timezone.utc))
