from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from backend.app import models


def _client_payload(**overrides) -> dict:
    payload = {
        "name": "Marina Costa",
        "company": "Costa Bakery",
        "email": "marina@costa.example",
        "phone": "+55 11 99999-0000",
        "source": "instagram",
        "sector": "food",
        "nps": 9,
        "upsell_potential": "high",
    }
    payload.update(overrides)
    return payload


def test_create_get_and_update_client(client) -> None:
    created = client.post("/api/clients/", json=_client_payload())
    assert created.status_code == 201, created.text
    client_id = created.json()["id"]
    assert created.json()["status"] == "active"

    fetched = client.get(f"/api/clients/{client_id}")
    assert fetched.status_code == 200
    assert fetched.json()["company"] == "Costa Bakery"

    updated = client.patch(f"/api/clients/{client_id}", json={"status": "inactive"})
    assert updated.status_code == 200
    assert updated.json()["status"] == "inactive"
    assert updated.json()["email"] == "marina@costa.example"


def test_duplicate_email_is_rejected(client) -> None:
    assert client.post("/api/clients/", json=_client_payload()).status_code == 201

    response = client.post("/api/clients/", json=_client_payload(name="Someone Else"))

    assert response.status_code == 409


def test_update_rejects_null_required_field(client, db_session, make_client) -> None:
    owner = make_client(db_session)

    response = client.patch(f"/api/clients/{owner.id}", json={"name": None})

    assert response.status_code == 400


def test_missing_client_returns_404(client) -> None:
    response = client.get("/api/clients/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404
    assert response.json() == {"detail": "Client not found"}


def test_list_clients_includes_portfolio_figures(
    client, db_session, make_client, make_project
) -> None:
    busy = make_client(db_session, name="Busy")
    idle = make_client(db_session, name="Idle")
    due = datetime(2030, 1, 1, tzinfo=timezone.utc)
    make_project(db_session, busy, due_date=due, value=Decimal("1000"))
    make_project(db_session, busy, due_date=due, value=Decimal("250.50"))
    db_session.add(
        models.Subscription(client_id=busy.id, billing_day=5, amount=Decimal("100"))
    )
    db_session.add(
        models.Interaction(
            client_id=busy.id, type=models.InteractionType.CALL, subject="Kickoff"
        )
    )
    db_session.commit()

    response = client.get("/api/clients/")

    assert response.status_code == 200
    rows = {row["name"]: row for row in response.json()}
    assert rows["Busy"]["project_count"] == 2
    assert Decimal(rows["Busy"]["total_value"]) == Decimal("1250.50")
    assert rows["Busy"]["has_active_subscription"] is True
    assert rows["Busy"]["last_interaction_at"] is not None
    assert rows["Idle"]["project_count"] == 0
    assert rows["Idle"]["has_active_subscription"] is False
    assert idle.id == rows["Idle"]["id"]


def test_client_projects_and_interactions_endpoints(
    client, db_session, make_client, make_project
) -> None:
    owner = make_client(db_session)
    make_project(db_session, owner, due_date=datetime(2030, 1, 1, tzinfo=timezone.utc))
    created = client.post(
        "/api/interactions/",
        json={"client_id": owner.id, "type": "meeting", "subject": "Quarterly review"},
    )
    assert created.status_code == 201

    projects = client.get(f"/api/clients/{owner.id}/projects")
    interactions = client.get(f"/api/clients/{owner.id}/interactions")

    assert projects.status_code == 200
    assert len(projects.json()) == 1
    assert interactions.json()[0]["subject"] == "Quarterly review"


def test_delete_client_cascades_to_dependents(
    client, db_session, make_client, make_project, fixed_now
) -> None:
    owner = make_client(db_session)
    bystander = make_client(db_session)
    project = make_project(db_session, owner, due_date=fixed_now - timedelta(days=3))
    kept_project = make_project(db_session, bystander, due_date=fixed_now)
    db_session.add(
        models.ProjectCost(
            project_id=project.id,
            description="Hosting",
            amount=Decimal("50"),
            cost_date=date(2024, 6, 1),
        )
    )
    subscription = models.Subscription(client_id=owner.id, billing_day=5, amount=Decimal("10"))
    db_session.add(subscription)
    db_session.flush()
    db_session.add_all(
        [
            models.SubscriptionService(subscription_id=subscription.id, description="Report"),
            models.Payment(
                subscription_id=subscription.id,
                amount=Decimal("10"),
                payment_date=date(2024, 6, 5),
                reference_month=6,
                reference_year=2024,
            ),
            models.Interaction(
                client_id=owner.id, type=models.InteractionType.EMAIL, subject="Hello"
            ),
            models.Alert(
                type=models.AlertType.PROJECT_DELAYED,
                title="Project overdue",
                description="",
                entity_id=project.id,
                entity_type=models.AlertEntityType.PROJECT,
            ),
            models.Alert(
                type=models.AlertType.PROJECT_DELAYED,
                title="Project overdue",
                description="",
                entity_id=kept_project.id,
                entity_type=models.AlertEntityType.PROJECT,
            ),
        ]
    )
    db_session.commit()
    owner_id = owner.id

    response = client.delete(f"/api/clients/{owner_id}")

    assert response.status_code == 204
    assert client.get(f"/api/clients/{owner_id}").status_code == 404
    assert db_session.query(models.Project).count() == 1
    assert db_session.query(models.ProjectCost).count() == 0
    assert db_session.query(models.Subscription).count() == 0
    assert db_session.query(models.SubscriptionService).count() == 0
    assert db_session.query(models.Payment).count() == 0
    assert db_session.query(models.Interaction).count() == 0
    remaining_alerts = db_session.query(models.Alert).all()
    assert [alert.entity_id for alert in remaining_alerts] == [kept_project.id]
