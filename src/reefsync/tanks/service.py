"""Tank retrieval and capacity enforcement."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from reefsync.db.models import Fish, Tank
from reefsync.errors import ConflictError, NotFoundError, OnChainError
from reefsync.ledger.client import LedgerError
from reefsync.validation import validate_address, validate_id

if TYPE_CHECKING:
    from reefsync.db.store import RelationalStore
    from reefsync.ledger.client import LedgerClient, TankOnChain

logger = structlog.get_logger()


@dataclass
class FishSummary:
    """Off-chain fields of a fish housed in a tank."""

    id: int
    owner: str
    species: str
    image_url: str | None
    created_at: datetime


@dataclass
class TankView:
    id: int
    capacity: int
    owner: str
    name: str
    sprite_url: str | None
    created_at: datetime
    fish: list[FishSummary] = field(default_factory=list)


@dataclass(frozen=True)
class TankOccupancy:
    tank_id: int
    current: int
    capacity: int


class TankService:
    """Merged tank views and the capacity guard used by fish-creating workflows."""

    def __init__(self, store: RelationalStore, ledger: LedgerClient) -> None:
        self.store = store
        self.ledger = ledger

    async def get_tank_by_id(self, tank_id: int) -> TankView:
        """
        Load a tank with on-chain capacity and the fish whose ``tank_id`` points at it.

        Raises:
            ValidationError: Invalid id.
            NotFoundError: No tank row.
            OnChainError: The ledger query failed.
        """
        validate_id(tank_id, "tank ID")

        row = await self.store.get(Tank, id=tank_id)
        if row is None:
            msg = f"Tank with ID {tank_id} not found"
            raise NotFoundError(msg)

        on_chain = await self._query_tank(tank_id)
        if on_chain.owner and on_chain.owner != row.owner:
            logger.warning("tank_owner_mismatch", tank_id=tank_id, off_chain=row.owner, on_chain=on_chain.owner)

        fish_rows = await self.store.select(Fish, tank_id=tank_id, order_by=Fish.id)
        return TankView(
            id=row.id,
            capacity=on_chain.capacity,
            owner=row.owner,
            name=row.name,
            sprite_url=row.sprite_url,
            created_at=row.created_at,
            fish=[
                FishSummary(
                    id=fish.id,
                    owner=fish.owner,
                    species=fish.species,
                    image_url=fish.image_url,
                    created_at=fish.created_at,
                )
                for fish in fish_rows
            ],
        )

    async def get_first_tank_id_by_owner(self, owner: str) -> int | None:
        """Lowest tank id owned by ``owner``, or None when the owner has no tank."""
        trimmed = validate_address(owner, "Owner address")
        tanks = await self.store.select(Tank, owner=trimmed, order_by=Tank.id, limit=1)
        return tanks[0].id if tanks else None

    async def check_tank_capacity(self, tank_id: int, additional_fish: int = 1) -> TankOccupancy:
        """
        Guard that ``additional_fish`` more fish fit in the tank.

        Occupancy is counted off-chain; capacity comes from the ledger.

        Raises:
            ValidationError: Invalid tank id or fish count.
            NotFoundError: No tank row.
            OnChainError: The ledger query failed.
            ConflictError: The tank would overflow.
        """
        validate_id(tank_id, "tank ID")
        validate_id(additional_fish, "additional fish count")

        if await self.store.get(Tank, id=tank_id) is None:
            msg = f"Tank with ID {tank_id} not found"
            raise NotFoundError(msg)

        on_chain = await self._query_tank(tank_id)
        current = await self.store.count(Fish, tank_id=tank_id)

        if current + additional_fish > on_chain.capacity:
            msg = (
                f"Tank {tank_id} is at capacity: {current} of {on_chain.capacity} slots used, "
                f"cannot add {additional_fish} more"
            )
            raise ConflictError(msg)
        return TankOccupancy(tank_id=tank_id, current=current, capacity=on_chain.capacity)

    async def _query_tank(self, tank_id: int) -> TankOnChain:
        try:
            return await self.ledger.query_tank(tank_id)
        except LedgerError as exc:
            logger.error("tank_onchain_query_failed", tank_id=tank_id, error=str(exc))
            msg = f"Failed to retrieve on-chain data for tank {tank_id}: {exc}"
            raise OnChainError(msg) from exc
