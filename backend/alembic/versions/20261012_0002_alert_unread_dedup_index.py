"""Allow only one unread alert per entity and alert type.

Duplicate unread rows left by overlapping evaluation passes are marked read
before the partial unique index is created. The newest row per tuple stays
unread; equal ``created_at`` values are broken by the highest ``alert_id``.
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261012_0002"
down_revision = "20261005_0001"
branch_labels = None
depends_on = None


INDEX_NAME = "alerts_unread_entity_uidx"


def upgrade() -> None:
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == "sqlite"
    unread = "is_read = 0" if is_sqlite else "is_read = false"
    mark_read = "1" if is_sqlite else "true"

    op.execute(
        sa.text(
            f"""
            UPDATE alerts SET is_read = {mark_read}
            WHERE {unread}
              AND EXISTS (
                SELECT 1 FROM alerts newer
                WHERE newer.{unread}
                  AND newer.entity_id = alerts.entity_id
                  AND newer.entity_type = alerts.entity_type
                  AND newer.type = alerts.type
                  AND (
                    newer.created_at > alerts.created_at
                    OR (
                      newer.created_at = alerts.created_at
                      AND newer.alert_id > alerts.alert_id
                    )
                  )
              )
            """
        )
    )

    op.create_index(
        INDEX_NAME,
        "alerts",
        ["entity_id", "entity_type", "type"],
        unique=True,
        sqlite_where=sa.text("is_read = 0"),
        postgresql_where=sa.text("is_read = false"),
    )


def downgrade() -> None:
    op.drop_index(INDEX_NAME, table_name="alerts")
