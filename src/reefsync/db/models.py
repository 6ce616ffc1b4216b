"""ORM models for the off-chain projections.

Fish and tank ids are assigned by the ledger, never by the database, so their
primary keys are declared without autoincrement.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from reefsync.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------


class Player(Base):
    """Maps to the 'players' table. One row per wallet address."""

    __tablename__ = "players"

    address: Mapped[str] = mapped_column(String(66), primary_key=True)

    # Mirrored on-chain counters
    total_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    fish_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    tournaments_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    reputation: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    offspring_created: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


# ---------------------------------------------------------------------------
# Tanks
# ---------------------------------------------------------------------------


class Tank(Base):
    """Maps to the 'tanks' table. Capacity lives on-chain."""

    __tablename__ = "tanks"
    __table_args__ = (Index("idx_tanks_owner", "owner"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    owner: Mapped[str] = mapped_column(
        String(66), ForeignKey("players.address", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    sprite_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


# ---------------------------------------------------------------------------
# Fish
# ---------------------------------------------------------------------------


class Fish(Base):
    """Maps to the 'fish' table. XP, state, hunger and DNA live on-chain."""

    __tablename__ = "fish"
    __table_args__ = (
        Index("idx_fish_owner", "owner"),
        Index("idx_fish_tank_id", "tank_id"),
        Index("idx_fish_parent1", "parent1_id"),
        Index("idx_fish_parent2", "parent2_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    owner: Mapped[str] = mapped_column(
        String(66), ForeignKey("players.address", ondelete="CASCADE"), nullable=False
    )
    species: Mapped[str] = mapped_column(String(128), nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    tank_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("tanks.id", ondelete="SET NULL"), nullable=True
    )
    parent1_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("fish.id", ondelete="SET NULL"), nullable=True
    )
    parent2_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("fish.id", ondelete="SET NULL"), nullable=True
    )


# ---------------------------------------------------------------------------
# Decorations
# ---------------------------------------------------------------------------


class Decoration(Base):
    """Maps to the 'decorations' table."""

    __tablename__ = "decorations"
    __table_args__ = (
        Index("idx_decorations_owner", "owner"),
        Index("idx_decorations_is_active", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    owner: Mapped[str] = mapped_column(
        String(66), ForeignKey("players.address", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


# ---------------------------------------------------------------------------
# Reconciliation queue
# ---------------------------------------------------------------------------


class SyncQueueEntry(Base):
    """Append-only record of an on-chain transaction awaiting confirmation."""

    __tablename__ = "sync_queue"
    __table_args__ = (
        Index("idx_sync_queue_status", "status"),
        Index("idx_sync_queue_entity", "entity_type", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tx_hash: Mapped[str] = mapped_column(String(66), unique=True, nullable=False)
    entity_type: Mapped[str] = mapped_column(String(16), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(66), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", server_default="pending")
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )
