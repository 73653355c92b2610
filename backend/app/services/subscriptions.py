"""Subscriptions, their service checklist and payments.

``SubscriptionAggregator`` assembles the API payloads. Billing dates are
derived from ``billing_day`` on every read and never written back.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from . import billing
from .alerts import AlertService

LOGGER = logging.getLogger(__name__)


class SubscriptionServiceError(Exception):
    """Raised when a subscription operation cannot be completed."""


class OrphanedSubscriptionError(SubscriptionServiceError):
    """Raised when a subscription references a client that no longer exists."""


def _with_relations(query):
    return query.options(
        selectinload(models.Subscription.client),
        selectinload(models.Subscription.services),
        selectinload(models.Subscription.payments),
    )


class SubscriptionAggregator:
    """Build enriched subscription payloads for the API."""

    @staticmethod
    def build(
        subscription: models.Subscription, now: date | datetime
    ) -> schemas.SubscriptionWithClient:
        if subscription.client is None:
            raise OrphanedSubscriptionError(
                f"Subscription {subscription.id} references missing client {subscription.client_id}"
            )

        snapshot = billing.resolve_billing(subscription.billing_day, now)
        services = sorted(subscription.services, key=lambda item: (item.order, item.created_at))
        payments = sorted(subscription.payments, key=lambda item: item.payment_date, reverse=True)
        last_payment = payments[0] if payments else None

        base = schemas.SubscriptionRead.model_validate(subscription).model_dump()
        return schemas.SubscriptionWithClient(
            **base,
            client=schemas.ClientRead.model_validate(subscription.client),
            services=[schemas.SubscriptionServiceRead.model_validate(item) for item in services],
            next_billing_date=snapshot.next_billing_date,
            billing_status=snapshot.status.value,
            is_overdue=snapshot.is_overdue,
            last_payment=(
                schemas.PaymentRead.model_validate(last_payment) if last_payment else None
            ),
            completed_services=sum(1 for item in services if item.is_completed),
            total_services=len(services),
        )

    @staticmethod
    def build_detail(
        subscription: models.Subscription, now: date | datetime
    ) -> schemas.SubscriptionWithDetails:
        summary = SubscriptionAggregator.build(subscription, now)
        payments = sorted(subscription.payments, key=lambda item: item.payment_date, reverse=True)
        return schemas.SubscriptionWithDetails(
            **summary.model_dump(exclude={"client", "services", "last_payment"}),
            client=summary.client,
            services=summary.services,
            last_payment=summary.last_payment,
            payments=[schemas.PaymentRead.model_validate(item) for item in payments],
        )

    @staticmethod
    def build_many(
        subscriptions: Iterable[models.Subscription], now: date | datetime
    ) -> list[schemas.SubscriptionWithClient]:
        results = []
        for subscription in subscriptions:
            try:
                results.append(SubscriptionAggregator.build(subscription, now))
            except OrphanedSubscriptionError as exc:
                LOGGER.warning("Skipping orphaned subscription: %s", exc)
        return results


class SubscriptionManager:
    """CRUD operations for subscriptions and their dependents."""

    @staticmethod
    def list_subscriptions(
        db: Session, *, status: Optional[models.SubscriptionStatus] = None
    ) -> list[models.Subscription]:
        query = _with_relations(db.query(models.Subscription))
        if status is not None:
            query = query.filter(models.Subscription.status == status)
        return query.order_by(models.Subscription.created_at.desc()).all()

    @staticmethod
    def get_subscription(db: Session, subscription_id: str) -> Optional[models.Subscription]:
        return (
            _with_relations(db.query(models.Subscription))
            .filter(models.Subscription.id == subscription_id)
            .first()
        )

    @staticmethod
    def create_subscription(
        db: Session, data: schemas.SubscriptionCreate
    ) -> models.Subscription:
        client = db.query(models.Client).filter(models.Client.id == data.client_id).first()
        if client is None:
            raise SubscriptionServiceError("Client not found for subscription.")

        subscription = models.Subscription(**data.model_dump(exclude={"services"}))
        db.add(subscription)
        db.flush()
        for position, item in enumerate(data.services):
            payload = item.model_dump()
            if "order" not in item.model_fields_set:
                payload["order"] = position
            db.add(models.SubscriptionService(subscription_id=subscription.id, **payload))
        db.commit()
        db.refresh(subscription)
        LOGGER.info(
            "Created subscription %s for client %s with %s services",
            subscription.id,
            client.id,
            len(data.services),
        )
        return subscription

    @staticmethod
    def update_subscription(
        db: Session, subscription: models.Subscription, data: schemas.SubscriptionUpdate
    ) -> models.Subscription:
        update_data = data.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            if value is None and field != "notes":
                raise SubscriptionServiceError(f"{field} cannot be null")
            setattr(subscription, field, value)
        db.add(subscription)
        db.commit()
        db.refresh(subscription)
        return subscription

    @staticmethod
    def delete_subscription(db: Session, subscription: models.Subscription) -> None:
        subscription_id = subscription.id
        try:
            for dependent in [*subscription.payments, *subscription.services]:
                db.delete(dependent)
            AlertService.delete_for_entities(
                db, models.AlertEntityType.SUBSCRIPTION, [subscription_id]
            )
            db.delete(subscription)
            db.commit()
        except Exception:
            db.rollback()
            LOGGER.exception("Failed to delete subscription %s", subscription_id)
            raise
        LOGGER.info("Deleted subscription %s", subscription_id)

    @staticmethod
    def list_services(db: Session, subscription_id: str) -> list[models.SubscriptionService]:
        return (
            db.query(models.SubscriptionService)
            .filter(models.SubscriptionService.subscription_id == subscription_id)
            .order_by(models.SubscriptionService.order, models.SubscriptionService.created_at)
            .all()
        )

    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[models.SubscriptionService]:
        return (
            db.query(models.SubscriptionService)
            .filter(models.SubscriptionService.id == service_id)
            .first()
        )

    @staticmethod
    def add_service(
        db: Session,
        subscription: models.Subscription,
        data: schemas.SubscriptionServiceCreate,
    ) -> models.SubscriptionService:
        payload = data.model_dump()
        if "order" not in data.model_fields_set:
            payload["order"] = len(subscription.services)
        item = models.SubscriptionService(subscription_id=subscription.id, **payload)
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def update_service(
        db: Session,
        item: models.SubscriptionService,
        data: schemas.SubscriptionServiceUpdate,
    ) -> models.SubscriptionService:
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None:
                raise SubscriptionServiceError(f"{field} cannot be null")
            setattr(item, field, value)
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def delete_service(db: Session, item: models.SubscriptionService) -> None:
        db.delete(item)
        db.commit()

    @staticmethod
    def list_payments(db: Session, subscription_id: str) -> list[models.Payment]:
        return (
            db.query(models.Payment)
            .filter(models.Payment.subscription_id == subscription_id)
            .order_by(models.Payment.payment_date.desc())
            .all()
        )

    @staticmethod
    def record_payment(
        db: Session, subscription: models.Subscription, data: schemas.PaymentCreate
    ) -> models.Payment:
        payment = models.Payment(subscription_id=subscription.id, **data.model_dump())
        db.add(payment)
        db.commit()
        db.refresh(payment)
        LOGGER.info(
            "Recorded payment %s for subscription %s (%s/%s)",
            payment.id,
            subscription.id,
            payment.reference_month,
            payment.reference_year,
        )
        return payment

    @staticmethod
    def summary(db: Session, now: date | datetime) -> schemas.SubscriptionSummary:
        """Aggregate recurring revenue and billing health across subscriptions."""

        counts = {status: 0 for status in models.SubscriptionStatus}
        mrr = Decimal("0")
        invalid = 0
        for subscription in db.query(models.Subscription).all():
            counts[subscription.status] += 1
            if subscription.status is not models.SubscriptionStatus.ACTIVE:
                continue
            mrr += Decimal(subscription.amount)
            snapshot = billing.resolve_billing(subscription.billing_day, now)
            if snapshot.status is billing.BillingStatus.INVALID:
                invalid += 1

        return schemas.SubscriptionSummary(
            mrr=mrr,
            active_count=counts[models.SubscriptionStatus.ACTIVE],
            paused_count=counts[models.SubscriptionStatus.PAUSED],
            cancelled_count=counts[models.SubscriptionStatus.CANCELLED],
            invalid_count=invalid,
        )
