from __future__ import annotations

import logging
import threading
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from backend.app import models
from backend.app.services import AlertService, NotificationService, is_project_overdue
from backend.app.services.notifications import days_overdue, delay_priority


@pytest.fixture
def service(session_factory, fixed_now) -> NotificationService:
    return NotificationService(session_factory, clock=lambda: fixed_now)


def _unread_alerts(session, entity_id: str) -> list[models.Alert]:
    return (
        session.query(models.Alert)
        .filter(models.Alert.entity_id == entity_id)
        .filter(models.Alert.is_read.is_(False))
        .all()
    )


def test_repeated_passes_keep_a_single_unread_alert(
    service, session_factory, fixed_now, make_client, make_project, make_rule
) -> None:
    with session_factory() as session:
        owner = make_client(session)
        project = make_project(session, owner, due_date=fixed_now - timedelta(days=2))
        make_rule(session)
        project_id = project.id

    summaries = [service.check_all_rules() for _ in range(3)]

    assert summaries[0].alerts_created == 1
    assert [summary.alerts_created for summary in summaries[1:]] == [0, 0]
    with session_factory() as session:
        alerts = _unread_alerts(session, project_id)
        assert len(alerts) == 1
        assert alerts[0].type is models.AlertType.PROJECT_DELAYED
        assert alerts[0].entity_type is models.AlertEntityType.PROJECT


def test_alert_reopens_after_being_read(
    service, session_factory, fixed_now, make_client, make_project, make_rule
) -> None:
    with session_factory() as session:
        owner = make_client(session)
        project = make_project(session, owner, due_date=fixed_now - timedelta(days=2))
        make_rule(session)
        project_id = project.id

    service.check_all_rules()
    with session_factory() as session:
        (alert,) = _unread_alerts(session, project_id)
        AlertService.mark_as_read(session, alert)

    summary = service.check_all_rules()

    assert summary.alerts_created == 1
    with session_factory() as session:
        assert len(_unread_alerts(session, project_id)) == 1
        total = (
            session.query(models.Alert).filter(models.Alert.entity_id == project_id).count()
        )
        assert total == 2


@pytest.mark.parametrize(
    ("days", "expected"),
    [
        (8, models.AlertPriority.HIGH),
        (5, models.AlertPriority.MEDIUM),
        (4, models.AlertPriority.MEDIUM),
        (3, models.AlertPriority.LOW),
        (1, models.AlertPriority.LOW),
    ],
)
def test_priority_follows_days_overdue(
    service, session_factory, fixed_now, make_client, make_project, make_rule, days, expected
) -> None:
    with session_factory() as session:
        owner = make_client(session)
        project = make_project(session, owner, due_date=fixed_now - timedelta(days=days))
        make_rule(session)
        project_id = project.id

    service.check_all_rules()

    with session_factory() as session:
        (alert,) = _unread_alerts(session, project_id)
        assert alert.priority is expected
        assert f"{days} day(s) overdue" in alert.description


def test_partial_day_counts_as_a_full_day(fixed_now) -> None:
    assert days_overdue(fixed_now - timedelta(hours=1), fixed_now) == 1
    assert days_overdue(fixed_now - timedelta(days=7, hours=1), fixed_now) == 8
    assert delay_priority(8) is models.AlertPriority.HIGH


def test_alert_text_names_project_and_due_date(
    service, session_factory, fixed_now, make_client, make_project, make_rule
) -> None:
    with session_factory() as session:
        owner = make_client(session, name="Acme Owner")
        project = make_project(
            session, owner, due_date=fixed_now - timedelta(days=2), name="Website redesign"
        )
        make_rule(session)
        project_id = project.id

    service.check_all_rules()

    with session_factory() as session:
        (alert,) = _unread_alerts(session, project_id)
        assert alert.title == "Project overdue: Website redesign"
        assert "18/06/2024" in alert.description
        assert "Acme Owner" in alert.description


@pytest.mark.parametrize(
    "status", [models.ProjectStatus.COMPLETED, models.ProjectStatus.CANCELLED]
)
def test_closed_projects_never_raise_alerts(
    service, session_factory, fixed_now, make_client, make_project, make_rule, status
) -> None:
    with session_factory() as session:
        owner = make_client(session)
        make_project(session, owner, due_date=fixed_now - timedelta(days=20), status=status)
        make_rule(session)

    summary = service.check_all_rules()

    assert summary.alerts_created == 0
    with session_factory() as session:
        assert session.query(models.Alert).count() == 0


def test_projects_not_yet_due_are_ignored(
    service, session_factory, fixed_now, make_client, make_project, make_rule
) -> None:
    with session_factory() as session:
        owner = make_client(session)
        make_project(session, owner, due_date=fixed_now + timedelta(hours=1))
        make_rule(session)

    assert service.check_all_rules().alerts_created == 0


def test_unknown_rule_type_is_skipped_and_logged(
    service, session_factory, fixed_now, make_client, make_project, make_rule, caplog
) -> None:
    caplog.set_level(logging.WARNING, logger="backend.app.services.notifications")
    with session_factory() as session:
        owner = make_client(session)
        make_project(session, owner, due_date=fixed_now - timedelta(days=2))
        bogus = make_rule(session, "bogus")
        make_rule(session)
        bogus_id = bogus.id

    summary = service.check_all_rules()

    assert summary.skipped_rules == [bogus_id]
    assert summary.rules_checked == 1
    assert summary.alerts_created == 1
    assert "Unknown notification rule type 'bogus'" in caplog.text


def test_inactive_rules_are_not_evaluated(
    service, session_factory, fixed_now, make_client, make_project, make_rule
) -> None:
    with session_factory() as session:
        owner = make_client(session)
        make_project(session, owner, due_date=fixed_now - timedelta(days=2))
        make_rule(session, is_active=False)

    summary = service.check_all_rules()

    assert summary.rules_checked == 0
    assert summary.alerts_created == 0


def test_failing_checker_does_not_stop_other_rules(
    service, session_factory, fixed_now, make_client, make_project, make_rule
) -> None:
    def _explode(db, rule, now):
        db.add(
            models.Alert(
                type=models.AlertType.UPSELL_OPPORTUNITY,
                title="partial write",
                description="should be rolled back",
                entity_id="client",
                entity_type=models.AlertEntityType.CLIENT,
            )
        )
        db.flush()
        raise RuntimeError("checker failure")

    service.register_checker(models.RuleType.UPSELL_OPPORTUNITY.value, _explode)
    with session_factory() as session:
        owner = make_client(session)
        project = make_project(session, owner, due_date=fixed_now - timedelta(days=2))
        failing = make_rule(session, models.RuleType.UPSELL_OPPORTUNITY.value)
        make_rule(session)
        failing_id = failing.id
        project_id = project.id

    summary = service.check_all_rules()

    assert summary.failed_rules == [failing_id]
    assert summary.alerts_created == 1
    with session_factory() as session:
        assert len(_unread_alerts(session, project_id)) == 1
        assert (
            session.query(models.Alert)
            .filter(models.Alert.title == "partial write")
            .count()
            == 0
        )


def test_unimplemented_rule_types_create_nothing(
    service, session_factory, fixed_now, make_rule
) -> None:
    with session_factory() as session:
        make_rule(session, models.RuleType.PAYMENT_PENDING.value)
        make_rule(session, models.RuleType.UPSELL_OPPORTUNITY.value)

    summary = service.check_all_rules()

    assert summary.rules_checked == 2
    assert summary.alerts_created == 0
    assert summary.skipped_rules == []


def test_overlapping_pass_is_skipped(service, session_factory, make_rule) -> None:
    started = threading.Event()
    release = threading.Event()

    def _slow(db, rule, now):
        started.set()
        release.wait(timeout=5)
        return 0

    service.register_checker("slow", _slow)
    with session_factory() as session:
        make_rule(session, "slow")

    results = []
    worker = threading.Thread(target=lambda: results.append(service.check_all_rules()))
    worker.start()
    try:
        assert started.wait(timeout=5)
        assert service.is_running is True
        assert service.check_all_rules() is None
    finally:
        release.set()
        worker.join(timeout=5)

    assert results and results[0].rules_checked == 1
    assert service.is_running is False


def test_unique_index_rejects_second_unread_alert(session_factory) -> None:
    def _alert(is_read: bool = False) -> models.Alert:
        return models.Alert(
            type=models.AlertType.PROJECT_DELAYED,
            title="Project overdue",
            description="",
            entity_id="project-1",
            entity_type=models.AlertEntityType.PROJECT,
            is_read=is_read,
        )

    with session_factory() as session:
        session.add_all([_alert(), _alert(is_read=True), _alert(is_read=True)])
        session.commit()

        session.add(_alert())
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()


def test_create_alert_once_ignores_conflicting_insert(session_factory, monkeypatch) -> None:
    kwargs = dict(
        alert_type=models.AlertType.PROJECT_DELAYED,
        entity_id="project-2",
        entity_type=models.AlertEntityType.PROJECT,
        title="Project overdue",
        description="",
    )
    with session_factory() as session:
        assert AlertService.create_alert_once(session, **kwargs) is True
        session.commit()

        # Simulate a concurrent writer that slipped past the lookup.
        monkeypatch.setattr(AlertService, "find_unread", staticmethod(lambda *a, **k: None))
        assert AlertService.create_alert_once(session, **kwargs) is False
        session.commit()

        assert session.query(models.Alert).count() == 1


def test_evaluator_agrees_with_project_overdue_flag(
    service, session_factory, fixed_now, make_client, make_project, make_rule
) -> None:
    with session_factory() as session:
        owner = make_client(session)
        due_now = make_project(session, owner, due_date=fixed_now, name="Due now")
        just_late = make_project(
            session, owner, due_date=fixed_now - timedelta(seconds=1), name="Just late"
        )
        make_rule(session)
        flags = {
            project.id: is_project_overdue(project, fixed_now)
            for project in (due_now, just_late)
        }

    service.check_all_rules()

    with session_factory() as session:
        alerted = {
            project_id
            for project_id in flags
            if _unread_alerts(session, project_id)
        }
    assert flags == {due_now.id: False, just_late.id: True}
    assert alerted == {project_id for project_id, overdue in flags.items() if overdue}
