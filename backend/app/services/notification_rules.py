"""CRUD operations over notification rule definitions."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from .. import models, schemas

LOGGER = logging.getLogger(__name__)

DEFAULT_RULES = (
    {
        "name": "Overdue projects",
        "description": (
            "Notify when a project's due date has passed and its status is "
            "neither completed nor cancelled."
        ),
        "condition": {
            "type": models.RuleType.PROJECT_DELAYED.value,
            "field": "dueDate",
            "operator": "less_than",
            "value": "now",
            "entityType": "project",
        },
        "is_active": True,
    },
)


class NotificationRuleError(Exception):
    """Raised when a rule definition cannot be stored."""


class NotificationRuleService:
    """Persistence helpers for :class:`models.NotificationRule`."""

    @staticmethod
    def list_rules(db: Session) -> list[models.NotificationRule]:
        return (
            db.query(models.NotificationRule)
            .order_by(models.NotificationRule.created_at.desc())
            .all()
        )

    @staticmethod
    def list_active_rules(db: Session) -> list[models.NotificationRule]:
        return (
            db.query(models.NotificationRule)
            .filter(models.NotificationRule.is_active.is_(True))
            .order_by(models.NotificationRule.created_at.desc())
            .all()
        )

    @staticmethod
    def get_rule(db: Session, rule_id: str) -> Optional[models.NotificationRule]:
        return (
            db.query(models.NotificationRule)
            .filter(models.NotificationRule.id == rule_id)
            .first()
        )

    @staticmethod
    def create_rule(
        db: Session, data: schemas.NotificationRuleCreate
    ) -> models.NotificationRule:
        payload = data.model_dump(exclude={"condition"})
        rule = models.NotificationRule(
            **payload,
            condition=data.condition.model_dump(by_alias=True),
        )
        db.add(rule)
        db.commit()
        db.refresh(rule)
        LOGGER.info("Created notification rule %s (%s)", rule.name, rule.rule_type)
        return rule

    @staticmethod
    def update_rule(
        db: Session,
        rule: models.NotificationRule,
        data: schemas.NotificationRuleUpdate,
    ) -> models.NotificationRule:
        update_data = data.model_dump(exclude_unset=True, exclude={"condition"})
        for field, value in update_data.items():
            if value is None:
                raise NotificationRuleError(f"{field} cannot be null")
            setattr(rule, field, value)
        if "condition" in data.model_fields_set:
            if data.condition is None:
                raise NotificationRuleError("condition cannot be null")
            rule.condition = data.condition.model_dump(by_alias=True)
        db.add(rule)
        db.commit()
        db.refresh(rule)
        return rule

    @staticmethod
    def delete_rule(db: Session, rule: models.NotificationRule) -> None:
        db.delete(rule)
        db.commit()

    @staticmethod
    def seed_default_rules(db: Session) -> list[models.NotificationRule]:
        """Create the built-in rules whose type has no definition yet."""

        existing_types = {rule.rule_type for rule in NotificationRuleService.list_rules(db)}
        created: list[models.NotificationRule] = []
        for definition in DEFAULT_RULES:
            rule_data = schemas.NotificationRuleCreate.model_validate(definition)
            if rule_data.condition.type in existing_types:
                LOGGER.info("Rule type %s already defined; skipping seed", rule_data.condition.type)
                continue
            created.append(NotificationRuleService.create_rule(db, rule_data))
        return created
