"""Initial schema: clients, projects, interactions, subscriptions, alerts and rules."""

from __future__ import annotations

from alembic import context, op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20261005_0001"
down_revision = None
branch_labels = None
depends_on = None


SQLITE_UUID_DEFAULT = sa.text(
    "lower(hex(randomblob(4)) || '-' || hex(randomblob(2)) || '-4' || "
    "substr(hex(randomblob(2)), 2) || '-' || substr('89ab', abs(random()) % 4 + 1, 1) || "
    "substr(hex(randomblob(2)), 2) || '-' || hex(randomblob(6)))"
)

ENUM_LENGTH = 32


def _dialect_name() -> str:
    bind = op.get_bind()
    if bind is not None:
        return bind.dialect.name
    ctx = context.get_context()
    return ctx.dialect.name if ctx is not None else ""


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    dialect_name = _dialect_name()

    uuid_type = sa.String(length=36)
    uuid_default = SQLITE_UUID_DEFAULT
    json_type = sa.JSON()

    if dialect_name == "postgresql":
        uuid_type = postgresql.UUID(as_uuid=True)
        uuid_default = sa.text("gen_random_uuid()")
        json_type = postgresql.JSONB()
        op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    op.create_table(
        "clients",
        sa.Column("client_id", uuid_type, primary_key=True, server_default=uuid_default),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("company", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("source", sa.String(length=100), nullable=False),
        sa.Column("sector", sa.String(length=100), nullable=False),
        sa.Column(
            "status", sa.String(length=ENUM_LENGTH), nullable=False, server_default="active"
        ),
        sa.Column("nps", sa.Float(), nullable=True),
        sa.Column("lifetime_value", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column(
            "upsell_potential",
            sa.String(length=ENUM_LENGTH),
            nullable=False,
            server_default="medium",
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "lifetime_value >= 0", name="ck_clients_lifetime_value_non_negative"
        ),
    )
    op.create_index("clients_status_idx", "clients", ["status"])

    op.create_table(
        "projects",
        sa.Column("project_id", uuid_type, primary_key=True, server_default=uuid_default),
        sa.Column(
            "client_id",
            uuid_type,
            sa.ForeignKey("clients.client_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "status", sa.String(length=ENUM_LENGTH), nullable=False, server_default="discovery"
        ),
        sa.Column("value", sa.Numeric(12, 2), nullable=False),
        sa.Column("estimated_hours", sa.Numeric(8, 2), nullable=True),
        sa.Column("worked_hours", sa.Numeric(8, 2), nullable=False, server_default="0"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint(
            "progress >= 0 AND progress <= 100", name="ck_projects_progress_range"
        ),
        sa.CheckConstraint("value >= 0", name="ck_projects_value_non_negative"),
    )
    op.create_index("projects_client_idx", "projects", ["client_id"])
    op.create_index("projects_status_due_idx", "projects", ["status", "due_date"])

    op.create_table(
        "project_costs",
        sa.Column("project_cost_id", uuid_type, primary_key=True, server_default=uuid_default),
        sa.Column(
            "project_id",
            uuid_type,
            sa.ForeignKey("projects.project_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("cost_date", sa.Date(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("project_costs_project_idx", "project_costs", ["project_id"])

    op.create_table(
        "interactions",
        sa.Column("interaction_id", uuid_type, primary_key=True, server_default=uuid_default),
        sa.Column(
            "client_id",
            uuid_type,
            sa.ForeignKey("clients.client_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(length=ENUM_LENGTH), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "interactions_client_created_idx", "interactions", ["client_id", "created_at"]
    )

    op.create_table(
        "subscriptions",
        sa.Column("subscription_id", uuid_type, primary_key=True, server_default=uuid_default),
        sa.Column(
            "client_id",
            uuid_type,
            sa.ForeignKey("clients.client_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("billing_day", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "status", sa.String(length=ENUM_LENGTH), nullable=False, server_default="active"
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "billing_day >= 1 AND billing_day <= 31",
            name="ck_subscriptions_billing_day_range",
        ),
        sa.CheckConstraint("amount >= 0", name="ck_subscriptions_amount_non_negative"),
    )
    op.create_index("subscriptions_client_idx", "subscriptions", ["client_id"])
    op.create_index("subscriptions_status_idx", "subscriptions", ["status"])

    op.create_table(
        "subscription_services",
        sa.Column(
            "subscription_service_id", uuid_type, primary_key=True, server_default=uuid_default
        ),
        sa.Column(
            "subscription_id",
            uuid_type,
            sa.ForeignKey("subscriptions.subscription_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "subscription_services_subscription_order_idx",
        "subscription_services",
        ["subscription_id", "order"],
    )

    op.create_table(
        "payments",
        sa.Column("payment_id", uuid_type, primary_key=True, server_default=uuid_default),
        sa.Column(
            "subscription_id",
            uuid_type,
            sa.ForeignKey("subscriptions.subscription_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("reference_month", sa.Integer(), nullable=False),
        sa.Column("reference_year", sa.Integer(), nullable=False),
        sa.Column("receipt_file_id", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "reference_month >= 1 AND reference_month <= 12",
            name="ck_payments_reference_month_range",
        ),
        sa.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )
    op.create_index(
        "payments_subscription_date_idx", "payments", ["subscription_id", "payment_date"]
    )

    op.create_table(
        "alerts",
        sa.Column("alert_id", uuid_type, primary_key=True, server_default=uuid_default),
        sa.Column("type", sa.String(length=ENUM_LENGTH), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("entity_type", sa.String(length=ENUM_LENGTH), nullable=False),
        sa.Column(
            "priority", sa.String(length=ENUM_LENGTH), nullable=False, server_default="medium"
        ),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("alerts_is_read_created_idx", "alerts", ["is_read", "created_at"])

    op.create_table(
        "notification_rules",
        sa.Column("rule_id", uuid_type, primary_key=True, server_default=uuid_default),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("condition", json_type, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("notification_rules_active_idx", "notification_rules", ["is_active"])


def downgrade() -> None:
    op.drop_index("notification_rules_active_idx", table_name="notification_rules")
    op.drop_table("notification_rules")
    op.drop_index("alerts_is_read_created_idx", table_name="alerts")
    op.drop_table("alerts")
    op.drop_index("payments_subscription_date_idx", table_name="payments")
    op.drop_table("payments")
    op.drop_index(
        "subscription_services_subscription_order_idx", table_name="subscription_services"
    )
    op.drop_table("subscription_services")
    op.drop_index("subscriptions_status_idx", table_name="subscriptions")
    op.drop_index("subscriptions_client_idx", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_index("interactions_client_created_idx", table_name="interactions")
    op.drop_table("interactions")
    op.drop_index("project_costs_project_idx", table_name="project_costs")
    op.drop_table("project_costs")
    op.drop_index("projects_status_due_idx", table_name="projects")
    op.drop_index("projects_client_idx", table_name="projects")
    op.drop_table("projects")
    op.drop_index("clients_status_idx", table_name="clients")
    op.drop_table("clients")
