"""Router exposing the alert inbox."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..services import AlertService

router = APIRouter()


@router.get("/", response_model=schemas.AlertListResponse)
def list_alerts(
    skip: int = Query(0, ge=0, description="Number of alerts to skip"),
    limit: int = Query(50, ge=1, le=200, description="Maximum number of alerts to return"),
    db: Session = Depends(get_db),
) -> schemas.AlertListResponse:
    """Return alert history, newest first."""
    items, total = AlertService.list_alerts(db, skip=skip, limit=limit)
    return schemas.AlertListResponse(items=items, total=total, limit=limit, skip=skip)


@router.get("/unread", response_model=list[schemas.AlertRead])
def list_unread_alerts(db: Session = Depends(get_db)) -> list[schemas.AlertRead]:
    return AlertService.list_unread(db)


def _mark_alert_read(alert_id: str, db: Session) -> schemas.AlertRead:
    alert = AlertService.get_alert(db, alert_id)
    if alert is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert not found")
    return AlertService.mark_as_read(db, alert)


@router.post("/{alert_id}/read", response_model=schemas.AlertRead)
def mark_alert_read(alert_id: str, db: Session = Depends(get_db)) -> schemas.AlertRead:
    """Acknowledge an alert. Repeating the call is harmless."""
    return _mark_alert_read(alert_id, db)


@router.patch("/{alert_id}/read", response_model=schemas.AlertRead)
def patch_alert_read(alert_id: str, db: Session = Depends(get_db)) -> schemas.AlertRead:
    return _mark_alert_read(alert_id, db)
