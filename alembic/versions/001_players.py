"""Players table with mirrored on-chain counters.

Revision ID: 001_players
Revises: None
Create Date: 2025-01-08
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_players"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create players and the shared updated_at trigger function."""
    op.create_table(
        "players",
        sa.Column("address", sa.String(66), primary_key=True),
        sa.Column("total_xp", sa.Integer(), server_default="0", nullable=False),
        sa.Column("fish_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("tournaments_won", sa.Integer(), server_default="0", nullable=False),
        sa.Column("reputation", sa.Integer(), server_default="0", nullable=False),
        sa.Column("offspring_created", sa.Integer(), server_default="0", nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
    )

    op.execute(
        """
        CREATE OR REPLACE FUNCTION set_updated_at()
        RETURNS TRIGGER AS $$
        BEGIN
          NEW.updated_at = NOW();
          RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
        """
    )
    op.execute(
        "CREATE TRIGGER trg_players_updated_at BEFORE UPDATE ON players "
        "FOR EACH ROW EXECUTE FUNCTION set_updated_at()"
    )


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_players_updated_at ON players")
    op.drop_table("players")
    op.execute("DROP FUNCTION IF EXISTS set_updated_at()")
