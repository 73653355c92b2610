from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import inspect

from backend.app import models
from backend.app.services import SubscriptionAggregator
from backend.app.services.billing import next_billing_date


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _create_subscription(client, client_id: str, **overrides) -> dict:
    payload = {
        "client_id": client_id,
        "billing_day": 10,
        "amount": "1500.00",
        "notes": "Monthly retainer",
        "services": [
            {"description": "SEO report"},
            {"description": "Social media posts", "is_completed": True},
        ],
    }
    payload.update(overrides)
    response = client.post("/api/subscriptions/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_billing_dates_are_not_persisted() -> None:
    columns = {column.key for column in inspect(models.Subscription).columns}

    assert "billing_day" in columns
    assert "next_billing_date" not in columns
    assert "is_overdue" not in columns
    project_columns = {column.key for column in inspect(models.Project).columns}
    assert "is_overdue" not in project_columns
    assert "profit" not in project_columns


def test_create_and_list_subscription_with_derived_fields(client, db_session, make_client) -> None:
    owner = make_client(db_session, name="Loja Azul")

    created = _create_subscription(client, owner.id)

    assert created["client"]["name"] == "Loja Azul"
    assert [item["description"] for item in created["services"]] == [
        "SEO report",
        "Social media posts",
    ]
    assert [item["order"] for item in created["services"]] == [0, 1]
    assert created["completed_services"] == 1
    assert created["total_services"] == 2
    assert created["billing_status"] == "upcoming"
    assert created["is_overdue"] is False
    assert created["last_payment"] is None
    assert created["payments"] == []
    expected = next_billing_date(10, _today())
    assert date.fromisoformat(created["next_billing_date"]) == expected

    listing = client.get("/api/subscriptions/")
    assert listing.status_code == 200
    (row,) = listing.json()
    assert row["id"] == created["id"]
    assert row["next_billing_date"] == created["next_billing_date"]
    assert "payments" not in row


def test_services_follow_explicit_order(client, db_session, make_client) -> None:
    owner = make_client(db_session)
    created = _create_subscription(
        client,
        owner.id,
        services=[
            {"description": "third", "order": 3},
            {"description": "first", "order": 1},
            {"description": "second", "order": 2},
        ],
    )

    assert [item["description"] for item in created["services"]] == ["first", "second", "third"]


def test_last_payment_is_most_recent_by_payment_date(client, db_session, make_client) -> None:
    owner = make_client(db_session)
    created = _create_subscription(client, owner.id)
    subscription_id = created["id"]

    for paid_on, month in (("2024-05-10", 5), ("2024-06-10", 6), ("2024-04-10", 4)):
        response = client.post(
            f"/api/subscriptions/{subscription_id}/payments",
            json={
                "amount": "1500.00",
                "payment_date": paid_on,
                "reference_month": month,
                "reference_year": 2024,
                "receipt_file_id": f"receipt-{month}",
            },
        )
        assert response.status_code == 201, response.text

    detail = client.get(f"/api/subscriptions/{subscription_id}").json()
    assert detail["last_payment"]["payment_date"] == "2024-06-10"
    assert [item["payment_date"] for item in detail["payments"]] == [
        "2024-06-10",
        "2024-05-10",
        "2024-04-10",
    ]

    listing = client.get("/api/subscriptions/").json()
    assert listing[0]["last_payment"]["receipt_file_id"] == "receipt-6"


def test_payment_rejects_invalid_reference_month(client, db_session, make_client) -> None:
    owner = make_client(db_session)
    created = _create_subscription(client, owner.id)

    response = client.post(
        f"/api/subscriptions/{created['id']}/payments",
        json={
            "amount": "10.00",
            "payment_date": "2024-06-10",
            "reference_month": 13,
            "reference_year": 2024,
        },
    )

    assert response.status_code == 422


def test_update_recomputes_billing_date(client, db_session, make_client) -> None:
    owner = make_client(db_session)
    created = _create_subscription(client, owner.id)

    response = client.patch(
        f"/api/subscriptions/{created['id']}",
        json={"billing_day": 28, "status": "paused"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["billing_day"] == 28
    assert payload["status"] == "paused"
    assert date.fromisoformat(payload["next_billing_date"]) == next_billing_date(28, _today())


def test_update_rejects_out_of_range_billing_day(client, db_session, make_client) -> None:
    owner = make_client(db_session)
    created = _create_subscription(client, owner.id)

    response = client.patch(f"/api/subscriptions/{created['id']}", json={"billing_day": 32})

    assert response.status_code == 422


def test_create_subscription_for_unknown_client_fails(client) -> None:
    response = client.post(
        "/api/subscriptions/",
        json={"client_id": str(uuid.uuid4()), "billing_day": 5, "amount": "10"},
    )

    assert response.status_code == 400


def test_checklist_items_can_be_added_toggled_and_removed(client, db_session, make_client) -> None:
    owner = make_client(db_session)
    created = _create_subscription(client, owner.id, services=[])
    subscription_id = created["id"]

    added = client.post(
        f"/api/subscriptions/{subscription_id}/services",
        json={"description": "Monthly call"},
    )
    assert added.status_code == 201
    item_id = added.json()["id"]

    toggled = client.patch(f"/api/subscription-services/{item_id}", json={"is_completed": True})
    assert toggled.status_code == 200
    assert toggled.json()["is_completed"] is True

    detail = client.get(f"/api/subscriptions/{subscription_id}").json()
    assert detail["completed_services"] == 1

    removed = client.delete(f"/api/subscription-services/{item_id}")
    assert removed.status_code == 204
    assert client.get(f"/api/subscriptions/{subscription_id}/services").json() == []
    assert client.delete(f"/api/subscription-services/{item_id}").status_code == 404


def test_orphaned_subscription_is_excluded_and_logged(
    client, db_session, make_client, caplog
) -> None:
    owner = make_client(db_session)
    _create_subscription(client, owner.id)
    orphan = models.Subscription(
        client_id=str(uuid.uuid4()), billing_day=3, amount=Decimal("99")
    )
    db_session.add(orphan)
    db_session.commit()
    orphan_id = orphan.id

    caplog.set_level(logging.WARNING)
    listing = client.get("/api/subscriptions/")

    assert listing.status_code == 200
    assert orphan_id not in {row["id"] for row in listing.json()}
    assert len(listing.json()) == 1
    assert "orphaned subscription" in caplog.text

    direct = client.get(f"/api/subscriptions/{orphan_id}")
    assert direct.status_code == 404


def test_corrupt_billing_day_is_reported_as_invalid(db_session, make_client) -> None:
    owner = make_client(db_session)
    subscription = models.Subscription(client_id=owner.id, billing_day=10, amount=Decimal("1"))
    db_session.add(subscription)
    db_session.commit()
    db_session.refresh(subscription)
    # Bypass the check constraint to mimic data written by an older release.
    subscription.billing_day = 0

    payload = SubscriptionAggregator.build(subscription, date(2024, 6, 15))

    assert payload.billing_status == "invalid"
    assert payload.next_billing_date is None
    assert payload.is_overdue is False


def test_summary_reports_recurring_revenue(client, db_session, make_client) -> None:
    owner = make_client(db_session)
    _create_subscription(client, owner.id, amount="1000.00")
    _create_subscription(client, owner.id, amount="500.50")
    _create_subscription(client, owner.id, amount="300.00", status="paused")
    _create_subscription(client, owner.id, amount="200.00", status="cancelled")

    response = client.get("/api/subscriptions/summary")

    assert response.status_code == 200
    summary = response.json()
    assert Decimal(summary["mrr"]) == Decimal("1500.50")
    assert summary["active_count"] == 2
    assert summary["paused_count"] == 1
    assert summary["cancelled_count"] == 1
    assert summary["invalid_count"] == 0


def test_delete_subscription_removes_dependents(client, db_session, make_client) -> None:
    owner = make_client(db_session)
    created = _create_subscription(client, owner.id)
    subscription_id = created["id"]
    client.post(
        f"/api/subscriptions/{subscription_id}/payments",
        json={
            "amount": "10.00",
            "payment_date": "2024-06-10",
            "reference_month": 6,
            "reference_year": 2024,
        },
    )

    response = client.delete(f"/api/subscriptions/{subscription_id}")

    assert response.status_code == 204
    assert client.get(f"/api/subscriptions/{subscription_id}").status_code == 404
    assert db_session.query(models.Payment).count() == 0
    assert db_session.query(models.SubscriptionService).count() == 0


def test_several_checklist_items_flush_together(db_session, make_client) -> None:
    owner = make_client(db_session)
    subscription = models.Subscription(client_id=owner.id, billing_day=1, amount=Decimal("5"))
    subscription.services = [
        models.SubscriptionService(description=f"item {index}", order=index)
        for index in range(3)
    ]
    db_session.add(subscription)
    db_session.commit()

    stored = (
        db_session.query(models.SubscriptionService)
        .order_by(models.SubscriptionService.order)
        .all()
    )
    assert [item.description for item in stored] == ["item 0", "item 1", "item 2"]
    assert all(isinstance(item.id, str) for item in stored)
    assert len({item.id for item in stored}) == 3


def test_create_with_many_checklist_items(client, db_session, make_client) -> None:
    owner = make_client(db_session)

    created = _create_subscription(
        client,
        owner.id,
        services=[{"description": name} for name in ("audit", "ads", "report", "call")],
    )

    assert created["total_services"] == 4
    listing = client.get("/api/subscriptions/")
    assert [row["id"] for row in listing.json()] == [created["id"]]


def test_summary_has_no_overdue_figure(client, db_session, make_client) -> None:
    owner = make_client(db_session)
    created = _create_subscription(client, owner.id, billing_day=31)

    summary = client.get("/api/subscriptions/summary").json()

    assert "overdue_count" not in summary
    assert created["billing_status"] == "upcoming"
    assert created["is_overdue"] is False
