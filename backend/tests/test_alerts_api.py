from __future__ import annotations

from datetime import datetime, timedelta, timezone

from backend.app import models


def _add_alert(session, title: str, *, created_at: datetime, is_read: bool = False) -> models.Alert:
    alert = models.Alert(
        type=models.AlertType.PROJECT_DELAYED,
        title=title,
        description="",
        entity_id=f"entity-{title}",
        entity_type=models.AlertEntityType.PROJECT,
        priority=models.AlertPriority.LOW,
        is_read=is_read,
        created_at=created_at,
    )
    session.add(alert)
    session.commit()
    session.refresh(alert)
    return alert


def test_unread_alerts_are_newest_first(client, db_session) -> None:
    base = datetime(2024, 6, 1, tzinfo=timezone.utc)
    _add_alert(db_session, "old", created_at=base)
    _add_alert(db_session, "new", created_at=base + timedelta(days=2))
    _add_alert(db_session, "read", created_at=base + timedelta(days=1), is_read=True)

    response = client.get("/api/alerts/unread")

    assert response.status_code == 200
    assert [alert["title"] for alert in response.json()] == ["new", "old"]


def test_alert_history_is_paginated(client, db_session) -> None:
    base = datetime(2024, 6, 1, tzinfo=timezone.utc)
    for index in range(3):
        _add_alert(db_session, f"alert-{index}", created_at=base + timedelta(hours=index))

    response = client.get("/api/alerts/", params={"limit": 2})

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 3
    assert payload["limit"] == 2
    assert [alert["title"] for alert in payload["items"]] == ["alert-2", "alert-1"]


def test_mark_as_read_is_idempotent(client, db_session) -> None:
    alert = _add_alert(db_session, "ack", created_at=datetime(2024, 6, 1, tzinfo=timezone.utc))

    first = client.post(f"/api/alerts/{alert.id}/read")
    second = client.patch(f"/api/alerts/{alert.id}/read")

    assert first.status_code == 200
    assert first.json()["is_read"] is True
    assert second.status_code == 200
    assert second.json()["is_read"] is True
    assert client.get("/api/alerts/unread").json() == []


def test_mark_missing_alert_returns_404(client) -> None:
    response = client.post("/api/alerts/00000000-0000-0000-0000-000000000000/read")

    assert response.status_code == 404
    assert response.json() == {"detail": "Alert not found"}
