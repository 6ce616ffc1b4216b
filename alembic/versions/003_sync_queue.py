"""Reconciliation queue for submitted ledger transactions.

Revision ID: 003_sync_queue
Revises: 002_tanks_and_fish
Create Date: 2025-01-11
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "003_sync_queue"
down_revision: str | None = "002_tanks_and_fish"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "sync_queue",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tx_hash", sa.String(66), nullable=False, unique=True),
        sa.Column("entity_type", sa.String(16), nullable=False),
        sa.Column("entity_id", sa.String(66), nullable=False),
        sa.Column("status", sa.String(16), server_default="pending", nullable=False),
        sa.Column("retry_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )
    op.create_index("idx_sync_queue_status", "sync_queue", ["status"])
    op.create_index("idx_sync_queue_entity", "sync_queue", ["entity_type", "entity_id"])

    op.execute(
        "ALTER TABLE sync_queue ADD CONSTRAINT ck_sync_queue_entity_type "
        "CHECK (entity_type IN ('player', 'fish', 'tank', 'decoration'))"
    )
    op.execute(
        "ALTER TABLE sync_queue ADD CONSTRAINT ck_sync_queue_status "
        "CHECK (status IN ('pending', 'confirmed', 'failed'))"
    )
    op.execute(
        "CREATE TRIGGER trg_sync_queue_updated_at BEFORE UPDATE ON sync_queue "
        "FOR EACH ROW EXECUTE FUNCTION set_updated_at()"
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_sync_queue_updated_at ON sync_queue")
    op.drop_table("sync_queue")
