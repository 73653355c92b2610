"""Router for notification rule definitions and manual evaluation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..services import NotificationRuleError, NotificationRuleService, NotificationService

router = APIRouter()


def get_notification_service(request: Request) -> NotificationService:
    service = getattr(request.app.state, "notification_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification service is not available",
        )
    return service


def _get_rule_or_404(db: Session, rule_id: str) -> models.NotificationRule:
    rule = NotificationRuleService.get_rule(db, rule_id)
    if rule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Notification rule not found"
        )
    return rule


@router.get("/", response_model=list[schemas.NotificationRuleRead])
def list_rules(db: Session = Depends(get_db)) -> list[schemas.NotificationRuleRead]:
    return NotificationRuleService.list_rules(db)


@router.post(
    "/", response_model=schemas.NotificationRuleRead, status_code=status.HTTP_201_CREATED
)
def create_rule(
    rule_in: schemas.NotificationRuleCreate, db: Session = Depends(get_db)
) -> schemas.NotificationRuleRead:
    return NotificationRuleService.create_rule(db, rule_in)


@router.post("/check", response_model=schemas.RuleEvaluationResult)
def check_rules(
    db: Session = Depends(get_db),
    service: NotificationService = Depends(get_notification_service),
) -> schemas.RuleEvaluationResult:
    """Run an evaluation pass now instead of waiting for the scheduler."""
    summary = service.check_all_rules(db)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A notification pass is already running",
        )
    return summary.to_schema()


@router.get("/{rule_id}", response_model=schemas.NotificationRuleRead)
def get_rule(rule_id: str, db: Session = Depends(get_db)) -> schemas.NotificationRuleRead:
    return _get_rule_or_404(db, rule_id)


@router.put("/{rule_id}", response_model=schemas.NotificationRuleRead)
def update_rule(
    rule_id: str,
    rule_in: schemas.NotificationRuleUpdate,
    db: Session = Depends(get_db),
) -> schemas.NotificationRuleRead:
    rule = _get_rule_or_404(db, rule_id)
    try:
        return NotificationRuleService.update_rule(db, rule, rule_in)
    except NotificationRuleError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(rule_id: str, db: Session = Depends(get_db)) -> None:
    rule = _get_rule_or_404(db, rule_id)
    NotificationRuleService.delete_rule(db, rule)
