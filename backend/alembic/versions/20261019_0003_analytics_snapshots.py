"""Dashboard analytics snapshots."""

from __future__ import annotations

from alembic import context, op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20261019_0003"
down_revision = "20261012_0002"
branch_labels = None
depends_on = None


SQLITE_UUID_DEFAULT = sa.text(
    "lower(hex(randomblob(4)) || '-' || hex(randomblob(2)) || '-4' || "
    "substr(hex(randomblob(2)), 2) || '-' || substr('89ab', abs(random()) % 4 + 1, 1) || "
    "substr(hex(randomblob(2)), 2) || '-' || hex(randomblob(6)))"
)


def _dialect_name() -> str:
    bind = op.get_bind()
    if bind is not None:
        return bind.dialect.name
    ctx = context.get_context()
    return ctx.dialect.name if ctx is not None else ""


def upgrade() -> None:
    uuid_type = sa.String(length=36)
    uuid_default = SQLITE_UUID_DEFAULT
    if _dialect_name() == "postgresql":
        uuid_type = postgresql.UUID(as_uuid=True)
        uuid_default = sa.text("gen_random_uuid()")

    op.create_table(
        "analytics",
        sa.Column("analytics_id", uuid_type, primary_key=True, server_default=uuid_default),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("mrr", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("churn_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("avg_lifetime_value", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("active_projects", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_revenue", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "churn_rate >= 0 AND churn_rate <= 100", name="ck_analytics_churn_rate_range"
        ),
        sa.CheckConstraint("active_projects >= 0", name="ck_analytics_active_projects_positive"),
    )
    op.create_index("analytics_date_idx", "analytics", ["date"])


def downgrade() -> None:
    op.drop_index("analytics_date_idx", table_name="analytics")
    op.drop_table("analytics")
