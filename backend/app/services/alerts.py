"""Alert store operations, including the unread-alert dedup contract."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple

from sqlalchemy import insert, text
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from .. import models
from ..db_types import new_guid
from ..models.alert import UNREAD_PREDICATE_POSTGRESQL, UNREAD_PREDICATE_SQLITE

LOGGER = logging.getLogger(__name__)

DEDUP_COLUMNS = ("entity_id", "entity_type", "type")

_CONFLICT_AWARE_INSERTS = {
    "sqlite": (sqlite_insert, UNREAD_PREDICATE_SQLITE),
    "postgresql": (postgresql_insert, UNREAD_PREDICATE_POSTGRESQL),
}


class AlertService:
    """Read, acknowledge and create alerts."""

    @staticmethod
    def list_alerts(
        db: Session, *, skip: int = 0, limit: int = 50
    ) -> Tuple[Iterable[models.Alert], int]:
        query = db.query(models.Alert)
        total = query.count()
        items = (
            query.order_by(models.Alert.created_at.desc())
            .offset(max(skip, 0))
            .limit(max(limit, 1))
            .all()
        )
        return items, total

    @staticmethod
    def list_unread(db: Session) -> list[models.Alert]:
        return (
            db.query(models.Alert)
            .filter(models.Alert.is_read.is_(False))
            .order_by(models.Alert.created_at.desc())
            .all()
        )

    @staticmethod
    def get_alert(db: Session, alert_id: str) -> Optional[models.Alert]:
        return db.query(models.Alert).filter(models.Alert.id == alert_id).first()

    @staticmethod
    def mark_as_read(db: Session, alert: models.Alert) -> models.Alert:
        if alert.is_read:
            return alert
        alert.is_read = True
        db.add(alert)
        db.commit()
        db.refresh(alert)
        return alert

    @staticmethod
    def find_unread(
        db: Session,
        *,
        entity_id: str,
        entity_type: models.AlertEntityType,
        alert_type: models.AlertType,
    ) -> Optional[models.Alert]:
        return (
            db.query(models.Alert)
            .filter(models.Alert.entity_id == str(entity_id))
            .filter(models.Alert.entity_type == entity_type)
            .filter(models.Alert.type == alert_type)
            .filter(models.Alert.is_read.is_(False))
            .first()
        )

    @staticmethod
    def create_alert_once(
        db: Session,
        *,
        alert_type: models.AlertType,
        entity_id: str,
        entity_type: models.AlertEntityType,
        title: str,
        description: str,
        priority: models.AlertPriority = models.AlertPriority.MEDIUM,
    ) -> bool:
        """Insert an unread alert unless one already exists for the same entity and type.

        Returns ``True`` when a row was written. The lookup covers the common
        case; the conflict-ignoring insert covers two writers racing past it.
        """

        existing = AlertService.find_unread(
            db, entity_id=entity_id, entity_type=entity_type, alert_type=alert_type
        )
        if existing is not None:
            LOGGER.debug(
                "Unread %s alert %s already open for %s %s",
                alert_type.value,
                existing.id,
                entity_type.value,
                entity_id,
            )
            return False

        table = models.Alert.__table__
        values = {
            "alert_id": new_guid(),
            "type": alert_type,
            "title": title,
            "description": description,
            "entity_id": str(entity_id),
            "entity_type": entity_type,
            "priority": priority,
            "is_read": False,
            "created_at": datetime.now(timezone.utc),
        }

        dialect_name = db.get_bind().dialect.name
        conflict_aware = _CONFLICT_AWARE_INSERTS.get(dialect_name)
        if conflict_aware is None:
            db.execute(insert(table).values(**values))
            return True

        insert_factory, predicate = conflict_aware
        statement = (
            insert_factory(table)
            .values(**values)
            .on_conflict_do_nothing(index_elements=list(DEDUP_COLUMNS), index_where=text(predicate))
        )
        result = db.execute(statement)
        created = result.rowcount == 1
        if not created:
            LOGGER.info(
                "Concurrent pass already raised %s alert for %s %s",
                alert_type.value,
                entity_type.value,
                entity_id,
            )
        return created

    @staticmethod
    def delete_for_entities(
        db: Session, entity_type: models.AlertEntityType, entity_ids: Iterable[str]
    ) -> int:
        ids = [str(entity_id) for entity_id in entity_ids]
        if not ids:
            return 0
        return (
            db.query(models.Alert)
            .filter(models.Alert.entity_type == entity_type)
            .filter(models.Alert.entity_id.in_(ids))
            .delete(synchronize_session=False)
        )
