"""Tanks and fish, keyed by ledger-assigned ids.

Revision ID: 002_tanks_and_fish
Revises: 001_players
Create Date: 2025-01-09
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002_tanks_and_fish"
down_revision: str | None = "001_players"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create tanks, then fish with tank and parent references."""
    op.create_table(
        "tanks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column(
            "owner", sa.String(66), sa.ForeignKey("players.address", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("sprite_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )
    op.create_index("idx_tanks_owner", "tanks", ["owner"])

    op.create_table(
        "fish",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column(
            "owner", sa.String(66), sa.ForeignKey("players.address", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("species", sa.String(128), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("tank_id", sa.Integer(), sa.ForeignKey("tanks.id", ondelete="SET NULL"), nullable=True),
        sa.Column("parent1_id", sa.Integer(), sa.ForeignKey("fish.id", ondelete="SET NULL"), nullable=True),
        sa.Column("parent2_id", sa.Integer(), sa.ForeignKey("fish.id", ondelete="SET NULL"), nullable=True),
    )
    op.create_index("idx_fish_owner", "fish", ["owner"])
    op.create_index("idx_fish_tank_id", "fish", ["tank_id"])
    op.create_index("idx_fish_parent1", "fish", ["parent1_id"])
    op.create_index("idx_fish_parent2", "fish", ["parent2_id"])

    # A fish can never be its own parent.
    op.execute(
        "ALTER TABLE fish ADD CONSTRAINT ck_fish_not_own_parent "
        "CHECK (parent1_id IS DISTINCT FROM id AND parent2_id IS DISTINCT FROM id)"
    )


def downgrade() -> None:
    op.drop_table("fish")
    op.drop_table("tanks")
