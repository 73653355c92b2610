"""Rule evaluation: turns active notification rules into alerts.

Each rule type maps to a checker ``(session, rule, now) -> alerts_created``.
A pass evaluates every active rule in its own unit of work so that one
failing rule cannot hide the alerts produced by the others.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session, sessionmaker, selectinload

from .. import models, schemas
from .alerts import AlertService
from .notification_rules import NotificationRuleService
from .projects import ensure_aware, is_project_overdue

LOGGER = logging.getLogger(__name__)

Checker = Callable[[Session, models.NotificationRule, datetime], int]
Clock = Callable[[], datetime]

HIGH_PRIORITY_DAYS = 7
MEDIUM_PRIORITY_DAYS = 3


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RuleEvaluationSummary:
    """Counters gathered during one pass."""

    rules_checked: int = 0
    alerts_created: int = 0
    skipped_rules: list[str] = field(default_factory=list)
    failed_rules: list[str] = field(default_factory=list)

    def to_schema(self) -> schemas.RuleEvaluationResult:
        return schemas.RuleEvaluationResult(
            rules_checked=self.rules_checked,
            alerts_created=self.alerts_created,
            skipped_rules=list(self.skipped_rules),
            failed_rules=list(self.failed_rules),
        )


def days_overdue(due_date: datetime, now: datetime) -> int:
    """Whole days past due, rounding any partial day up."""

    elapsed = ensure_aware(now) - ensure_aware(due_date)
    return math.ceil(elapsed / timedelta(days=1))


def delay_priority(days: int) -> models.AlertPriority:
    if days > HIGH_PRIORITY_DAYS:
        return models.AlertPriority.HIGH
    if days > MEDIUM_PRIORITY_DAYS:
        return models.AlertPriority.MEDIUM
    return models.AlertPriority.LOW


def check_project_delayed(
    db: Session, rule: models.NotificationRule, now: datetime
) -> int:
    """Raise one alert per open project whose due date has passed."""

    projects = (
        db.query(models.Project)
        .options(selectinload(models.Project.client))
        .filter(models.Project.status.notin_(list(models.TERMINAL_PROJECT_STATUSES)))
        .all()
    )
    created = 0
    for project in projects:
        if not is_project_overdue(project, now):
            continue
        due_date = ensure_aware(project.due_date)
        days = days_overdue(due_date, now)
        client_name = project.client.name if project.client else "unknown client"
        inserted = AlertService.create_alert_once(
            db,
            alert_type=models.AlertType.PROJECT_DELAYED,
            entity_id=project.id,
            entity_type=models.AlertEntityType.PROJECT,
            title=f"Project overdue: {project.name}",
            description=(
                f"Project for {client_name} is {days} day(s) overdue "
                f"(due {due_date.strftime('%d/%m/%Y')})."
            ),
            priority=delay_priority(days),
        )
        if inserted:
            created += 1
    return created


def _unimplemented_checker(rule_type: models.RuleType) -> Checker:
    def checker(db: Session, rule: models.NotificationRule, now: datetime) -> int:
        LOGGER.info(
            "Rule %s (%s) has no evaluation logic yet; nothing to do",
            rule.id,
            rule_type.value,
        )
        return 0

    return checker


class NotificationService:
    """Evaluates active notification rules against current data."""

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Optional[Clock] = None,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock or _utcnow
        self._pass_lock = threading.Lock()
        self._checkers: Dict[str, Checker] = {
            models.RuleType.PROJECT_DELAYED.value: check_project_delayed,
            models.RuleType.PAYMENT_PENDING.value: _unimplemented_checker(
                models.RuleType.PAYMENT_PENDING
            ),
            models.RuleType.UPSELL_OPPORTUNITY.value: _unimplemented_checker(
                models.RuleType.UPSELL_OPPORTUNITY
            ),
        }

    def register_checker(self, rule_type: str, checker: Checker) -> None:
        self._checkers[rule_type] = checker

    @property
    def rule_types(self) -> list[str]:
        return sorted(self._checkers)

    @property
    def is_running(self) -> bool:
        return self._pass_lock.locked()

    def check_all_rules(self, db: Optional[Session] = None) -> Optional[RuleEvaluationSummary]:
        """Run one pass over every active rule.

        Returns ``None`` without doing anything when another pass holds the
        lock.
        """

        if not self._pass_lock.acquire(blocking=False):
            LOGGER.info("Notification pass already running; skipping")
            return None
        try:
            if db is not None:
                return self._run_pass(db)
            session = self._session_factory()
            try:
                return self._run_pass(session)
            finally:
                session.close()
        finally:
            self._pass_lock.release()

    def _run_pass(self, db: Session) -> RuleEvaluationSummary:
        now = self._clock()
        summary = RuleEvaluationSummary()
        rules = NotificationRuleService.list_active_rules(db)
        LOGGER.debug("Evaluating %s active notification rules", len(rules))

        for rule in rules:
            rule_id = str(rule.id)
            rule_type = rule.rule_type
            checker = self._checkers.get(rule_type) if rule_type else None
            if checker is None:
                LOGGER.warning(
                    "Unknown notification rule type %r for rule %s; skipping",
                    rule_type,
                    rule_id,
                )
                summary.skipped_rules.append(rule_id)
                continue

            try:
                created = checker(db, rule, now)
                db.commit()
            except Exception:
                db.rollback()
                LOGGER.exception("Notification rule %s (%s) failed", rule_id, rule_type)
                summary.failed_rules.append(rule_id)
                continue

            summary.rules_checked += 1
            summary.alerts_created += created

        LOGGER.info(
            "Notification pass finished: %s rules checked, %s alerts created, "
            "%s skipped, %s failed",
            summary.rules_checked,
            summary.alerts_created,
            len(summary.skipped_rules),
            len(summary.failed_rules),
        )
        return summary
