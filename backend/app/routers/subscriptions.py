"""Routers for subscriptions, their service checklist and payments."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..services import (
    OrphanedSubscriptionError,
    SubscriptionAggregator,
    SubscriptionManager,
    SubscriptionServiceError,
)

LOGGER = logging.getLogger(__name__)

router = APIRouter()
services_router = APIRouter()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _get_subscription_or_404(db: Session, subscription_id: str) -> models.Subscription:
    subscription = SubscriptionManager.get_subscription(db, subscription_id)
    if subscription is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found"
        )
    return subscription


@router.get("/", response_model=list[schemas.SubscriptionWithClient])
def list_subscriptions(
    status_filter: Optional[models.SubscriptionStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
) -> list[schemas.SubscriptionWithClient]:
    """Return subscriptions with client, checklist and billing dates computed now."""
    subscriptions = SubscriptionManager.list_subscriptions(db, status=status_filter)
    return SubscriptionAggregator.build_many(subscriptions, _now())


@router.get("/summary", response_model=schemas.SubscriptionSummary)
def get_subscription_summary(db: Session = Depends(get_db)) -> schemas.SubscriptionSummary:
    return SubscriptionManager.summary(db, _now())


@router.get("/{subscription_id}", response_model=schemas.SubscriptionWithDetails)
def get_subscription(
    subscription_id: str, db: Session = Depends(get_db)
) -> schemas.SubscriptionWithDetails:
    subscription = _get_subscription_or_404(db, subscription_id)
    try:
        return SubscriptionAggregator.build_detail(subscription, _now())
    except OrphanedSubscriptionError as exc:
        LOGGER.warning("Refusing to serve orphaned subscription: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found"
        ) from exc


@router.post(
    "/", response_model=schemas.SubscriptionWithDetails, status_code=status.HTTP_201_CREATED
)
def create_subscription(
    subscription_in: schemas.SubscriptionCreate, db: Session = Depends(get_db)
) -> schemas.SubscriptionWithDetails:
    try:
        subscription = SubscriptionManager.create_subscription(db, subscription_in)
    except SubscriptionServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SubscriptionAggregator.build_detail(subscription, _now())


@router.patch("/{subscription_id}", response_model=schemas.SubscriptionWithDetails)
def update_subscription(
    subscription_id: str,
    subscription_in: schemas.SubscriptionUpdate,
    db: Session = Depends(get_db),
) -> schemas.SubscriptionWithDetails:
    """Apply a partial update; billing dates in the response are recomputed."""
    subscription = _get_subscription_or_404(db, subscription_id)
    try:
        subscription = SubscriptionManager.update_subscription(db, subscription, subscription_in)
    except SubscriptionServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SubscriptionAggregator.build_detail(subscription, _now())


@router.delete("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subscription(subscription_id: str, db: Session = Depends(get_db)) -> None:
    subscription = _get_subscription_or_404(db, subscription_id)
    SubscriptionManager.delete_subscription(db, subscription)


@router.get("/{subscription_id}/services", response_model=list[schemas.SubscriptionServiceRead])
def list_subscription_services(
    subscription_id: str, db: Session = Depends(get_db)
) -> list[schemas.SubscriptionServiceRead]:
    _get_subscription_or_404(db, subscription_id)
    return SubscriptionManager.list_services(db, subscription_id)


@router.post(
    "/{subscription_id}/services",
    response_model=schemas.SubscriptionServiceRead,
    status_code=status.HTTP_201_CREATED,
)
def add_subscription_service(
    subscription_id: str,
    service_in: schemas.SubscriptionServiceCreate,
    db: Session = Depends(get_db),
) -> schemas.SubscriptionServiceRead:
    subscription = _get_subscription_or_404(db, subscription_id)
    return SubscriptionManager.add_service(db, subscription, service_in)


@router.get("/{subscription_id}/payments", response_model=list[schemas.PaymentRead])
def list_subscription_payments(
    subscription_id: str, db: Session = Depends(get_db)
) -> list[schemas.PaymentRead]:
    _get_subscription_or_404(db, subscription_id)
    return SubscriptionManager.list_payments(db, subscription_id)


@router.post(
    "/{subscription_id}/payments",
    response_model=schemas.PaymentRead,
    status_code=status.HTTP_201_CREATED,
)
def record_subscription_payment(
    subscription_id: str,
    payment_in: schemas.PaymentCreate,
    db: Session = Depends(get_db),
) -> schemas.PaymentRead:
    subscription = _get_subscription_or_404(db, subscription_id)
    return SubscriptionManager.record_payment(db, subscription, payment_in)


def _get_service_or_404(db: Session, service_id: str) -> models.SubscriptionService:
    item = SubscriptionManager.get_service(db, service_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Subscription service not found"
        )
    return item


@services_router.patch("/{service_id}", response_model=schemas.SubscriptionServiceRead)
def update_subscription_service(
    service_id: str,
    service_in: schemas.SubscriptionServiceUpdate,
    db: Session = Depends(get_db),
) -> schemas.SubscriptionServiceRead:
    """Edit or tick off a checklist item."""
    item = _get_service_or_404(db, service_id)
    try:
        return SubscriptionManager.update_service(db, item, service_in)
    except SubscriptionServiceError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@services_router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subscription_service(service_id: str, db: Session = Depends(get_db)) -> None:
    item = _get_service_or_404(db, service_id)
    SubscriptionManager.delete_service(db, item)
