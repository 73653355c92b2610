"""Dashboard analytics snapshots: stored history plus capture from live data."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from .projects import ensure_aware

LOGGER = logging.getLogger(__name__)

CENTS = Decimal("0.01")
MONTHS_PER_YEAR = 12


class AnalyticsServiceError(Exception):
    """Raised when an analytics query or snapshot is invalid."""


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENTS, rounding=ROUND_HALF_UP)


class AnalyticsService:
    """Read and record :class:`~backend.app.models.AnalyticsSnapshot` rows."""

    @staticmethod
    def get_latest(db: Session) -> Optional[models.AnalyticsSnapshot]:
        return (
            db.query(models.AnalyticsSnapshot)
            .order_by(
                models.AnalyticsSnapshot.date.desc(),
                models.AnalyticsSnapshot.created_at.desc(),
            )
            .first()
        )

    @staticmethod
    def list_snapshots(
        db: Session,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[models.AnalyticsSnapshot]:
        """Snapshots inside ``[start, end]``, newest first."""

        if start is not None and end is not None and ensure_aware(end) < ensure_aware(start):
            raise AnalyticsServiceError("end cannot be before start")
        query = db.query(models.AnalyticsSnapshot)
        if start is not None:
            query = query.filter(models.AnalyticsSnapshot.date >= start)
        if end is not None:
            query = query.filter(models.AnalyticsSnapshot.date <= end)
        return query.order_by(models.AnalyticsSnapshot.date.desc()).all()

    @staticmethod
    def create_snapshot(db: Session, data: schemas.AnalyticsCreate) -> models.AnalyticsSnapshot:
        snapshot = models.AnalyticsSnapshot(**data.model_dump())
        db.add(snapshot)
        db.commit()
        db.refresh(snapshot)
        return snapshot

    @staticmethod
    def compute(db: Session, now: datetime) -> schemas.AnalyticsCreate:
        """Derive the headline figures from current clients, projects and payments.

        * ``mrr``: sum of active subscription amounts.
        * ``churn_rate``: cancelled subscriptions as a percentage of all.
        * ``avg_lifetime_value``: a year of MRR spread over clients with an
          active subscription.
        * ``active_projects``: projects not completed or cancelled.
        * ``total_revenue``: every payment received.
        """

        status_counts = dict(
            db.query(models.Subscription.status, func.count(models.Subscription.id))
            .group_by(models.Subscription.status)
            .all()
        )
        total_subscriptions = sum(status_counts.values())
        cancelled = status_counts.get(models.SubscriptionStatus.CANCELLED, 0)

        active = models.Subscription.status == models.SubscriptionStatus.ACTIVE
        mrr = _money(db.query(func.sum(models.Subscription.amount)).filter(active).scalar())
        paying_clients = (
            db.query(func.count(func.distinct(models.Subscription.client_id)))
            .filter(active)
            .scalar()
            or 0
        )
        active_projects = (
            db.query(func.count(models.Project.id))
            .filter(models.Project.status.notin_(list(models.TERMINAL_PROJECT_STATUSES)))
            .scalar()
            or 0
        )
        total_revenue = _money(db.query(func.sum(models.Payment.amount)).scalar())

        churn_rate = round(cancelled * 100 / total_subscriptions, 2) if total_subscriptions else 0.0
        lifetime_value = (
            _money(mrr * MONTHS_PER_YEAR / paying_clients) if paying_clients else _money(0)
        )
        return schemas.AnalyticsCreate(
            date=ensure_aware(now),
            mrr=mrr,
            churn_rate=churn_rate,
            avg_lifetime_value=lifetime_value,
            active_projects=active_projects,
            total_revenue=total_revenue,
        )

    @staticmethod
    def capture_snapshot(db: Session, now: datetime) -> models.AnalyticsSnapshot:
        snapshot = AnalyticsService.create_snapshot(db, AnalyticsService.compute(db, now))
        LOGGER.info(
            "Captured analytics snapshot %s: mrr=%s churn=%.2f%% active_projects=%s",
            snapshot.id,
            snapshot.mrr,
            snapshot.churn_rate,
            snapshot.active_projects,
        )
        return snapshot
