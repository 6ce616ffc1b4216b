"""Decorations owned by players.

Revision ID: 004_decorations
Revises: 003_sync_queue
Create Date: 2025-01-12
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "004_decorations"
down_revision: str | None = "003_sync_queue"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # kind stays free text; unknown kinds contribute no XP bonus.
    op.create_table(
        "decorations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column(
            "owner", sa.String(66), sa.ForeignKey("players.address", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )
    op.create_index("idx_decorations_owner", "decorations", ["owner"])
    op.create_index("idx_decorations_is_active", "decorations", ["is_active"])


def downgrade() -> None:
    op.drop_table("decorations")
