"""
Fish retrieval, batch feeding and breeding.

A fish is split across both ledgers: XP, state, hunger, breeding readiness
and DNA are on-chain; owner, species, artwork, tank and parents are
off-chain. Reads merge the two. Writes hit the ledger first and the
relational store second.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from reefsync.db.models import Fish, Player
from reefsync.errors import (
    DomainError,
    NotFoundError,
    OffChainCommitError,
    OnChainError,
    ValidationError,
)
from reefsync.fish.genealogy import FamilyTree, build_family_tree
from reefsync.ledger.client import LedgerError
from reefsync.reconciliation.policy import insert_idempotent
from reefsync.reconciliation.queue import EntityType, enqueue_transaction
from reefsync.reconciliation.saga import Saga
from reefsync.tanks.service import TankService
from reefsync.validation import is_valid_id, validate_address, validate_id
from reefsync.xp.calculator import (
    FishState,
    calculate_fish_xp,
    calculate_player_xp,
    get_active_decorations_percentage,
    get_feed_base_xp,
    to_xp_amount,
)

if TYPE_CHECKING:
    from reefsync.db.store import RelationalStore
    from reefsync.ledger.client import FishOnChain, LedgerClient

logger = structlog.get_logger()


@dataclass
class FishView:
    # On-chain
    id: int
    xp: int
    state: str
    hunger: int
    ready_to_breed: bool
    dna: str
    # Off-chain
    owner: str
    species: str
    image_url: str | None
    created_at: datetime
    tank_id: int | None = None
    parent1_id: int | None = None
    parent2_id: int | None = None


@dataclass
class FeedResult:
    player_tx_hash: str
    fish_tx_hashes: dict[int, str]
    xp_per_fish: int
    total_xp: int
    multiplier_percent: int
    tank_id: int | None


def _merge(row: Fish, on_chain: FishOnChain) -> FishView:
    if on_chain.owner and on_chain.owner != row.owner:
        logger.warning("fish_owner_mismatch", fish_id=row.id, off_chain=row.owner, on_chain=on_chain.owner)
    return FishView(
        id=row.id,
        xp=on_chain.xp,
        state=on_chain.state,
        hunger=on_chain.hunger,
        ready_to_breed=on_chain.ready_to_breed,
        dna=on_chain.dna,
        owner=row.owner,
        species=row.species,
        image_url=row.image_url,
        created_at=row.created_at,
        tank_id=row.tank_id,
        parent1_id=row.parent1_id,
        parent2_id=row.parent2_id,
    )


class FishService:
    """Fish workflows spanning the ledger and the relational store."""

    def __init__(self, store: RelationalStore, ledger: LedgerClient) -> None:
        self.store = store
        self.ledger = ledger
        self.tanks = TankService(store, ledger)

    # ── Retrieval ──

    async def get_fish_by_id(self, fish_id: int) -> FishView:
        """
        Raises:
            ValidationError: Invalid id.
            NotFoundError: No off-chain row.
            OnChainError: The ledger query failed.
        """
        validate_id(fish_id, "fish ID")

        row = await self.store.get(Fish, id=fish_id)
        if row is None:
            msg = f"Fish with ID {fish_id} not found"
            raise NotFoundError(msg)

        try:
            on_chain = await self.ledger.query_fish(fish_id)
        except LedgerError as exc:
            logger.error("fish_onchain_query_failed", fish_id=fish_id, error=str(exc))
            msg = f"Failed to retrieve on-chain data for fish {fish_id}: {exc}"
            raise OnChainError(msg) from exc
        return _merge(row, on_chain)

    async def get_fish_by_owner(self, address: str) -> list[FishView]:
        """All fish of a registered player, ordered by id. Ledger queries run concurrently."""
        owner = validate_address(address)

        if await self.store.get(Player, address=owner) is None:
            msg = f"Player with address {owner} not found"
            raise NotFoundError(msg)

        rows = await self.store.select(Fish, owner=owner, order_by=Fish.id)
        if not rows:
            return []

        try:
            on_chain = await asyncio.gather(*(self.ledger.query_fish(row.id) for row in rows))
        except LedgerError as exc:
            logger.error("fish_onchain_query_failed", owner=owner, error=str(exc))
            msg = f"Failed to retrieve on-chain data for fish owned by {owner}: {exc}"
            raise OnChainError(msg) from exc
        return [_merge(row, chain) for row, chain in zip(rows, on_chain)]

    async def get_fish_family(self, fish_id: int) -> FamilyTree:
        return await build_family_tree(self.store, fish_id)

    async def get_fish_count_in_tank(self, tank_id: int) -> int:
        validate_id(tank_id, "tank ID")
        return await self.store.count(Fish, tank_id=tank_id)

    # ── Feeding ──

    async def feed_fish_batch(self, fish_ids: list[int], owner: str) -> FeedResult:
        """
        Feed a batch of fish owned by ``owner``.

        Every fish gets the same XP: base feed XP plus the tank-wide
        decoration bonus, rounded half-up to a whole amount before the
        ledger grant (a 5% bonus on base 10 grants 11, not 10.5). Fish
        grants run one at a time; a failed grant aborts without undoing
        earlier grants. The player's total is then
        granted on-chain and mirrored off-chain with an atomic increment.

        Raises:
            ValidationError: Bad ids, duplicates, bad owner, or fish owned by
                someone else (all offenders named).
            NotFoundError: Unknown fish ids (all named) or unknown player.
            OnChainError: A ledger grant failed.
        """
        if not isinstance(fish_ids, (list, tuple)) or not fish_ids:
            msg = "fish_ids must be a non-empty list"
            raise ValidationError(msg)
        for fish_id in fish_ids:
            if not is_valid_id(fish_id):
                msg = f"Invalid fish ID: {fish_id}"
                raise ValidationError(msg)
        duplicates = sorted({fish_id for fish_id in fish_ids if fish_ids.count(fish_id) > 1})
        if duplicates:
            msg = f"Duplicate fish IDs in batch: {duplicates}"
            raise ValidationError(msg)
        trimmed = validate_address(owner, "Owner address")

        rows = {row.id: row for row in await self.store.select(Fish, id=list(fish_ids))}

        missing = [fish_id for fish_id in fish_ids if fish_id not in rows]
        if missing:
            msg = f"Fish with IDs {missing} not found"
            raise NotFoundError(msg)

        foreign = [fish_id for fish_id in fish_ids if rows[fish_id].owner != trimmed]
        if foreign:
            msg = f"Fish with IDs {foreign} do not belong to owner {trimmed}"
            raise ValidationError(msg)

        tank_id = await self.tanks.get_first_tank_id_by_owner(trimmed)
        multiplier_percent = 0
        if tank_id is None:
            logger.info("feed_without_tank", owner=trimmed)
        else:
            try:
                multiplier_percent = await get_active_decorations_percentage(self.store, tank_id)
            except DomainError as exc:
                logger.warning("decoration_multiplier_failed", tank_id=tank_id, error=exc.message)

        xp_per_fish = to_xp_amount(calculate_fish_xp(get_feed_base_xp(), multiplier_percent))
        total_xp = int(calculate_player_xp([xp_per_fish] * len(fish_ids)))

        fish_tx_hashes: dict[int, str] = {}
        try:
            for fish_id in fish_ids:
                fish_tx_hashes[fish_id] = await self.ledger.grant_fish_xp(fish_id, xp_per_fish)
        except LedgerError as exc:
            logger.error(
                "fish_xp_grant_failed",
                owner=trimmed,
                fish_ids=list(fish_ids),
                granted=list(fish_tx_hashes),
                error=str(exc),
            )
            await self._enqueue_fish_grants(fish_tx_hashes)
            msg = f"Failed to grant fish XP on-chain: {exc}"
            last_tx = list(fish_tx_hashes.values())[-1] if fish_tx_hashes else None
            raise OnChainError(msg, tx_hash=last_tx) from exc

        try:
            player_tx_hash = await self.ledger.grant_player_xp(trimmed, total_xp)
        except LedgerError as exc:
            logger.error("player_xp_grant_failed", owner=trimmed, total_xp=total_xp, error=str(exc))
            await self._enqueue_fish_grants(fish_tx_hashes)
            msg = f"Failed to grant player XP on-chain: {exc}"
            raise OnChainError(msg, tx_hash=list(fish_tx_hashes.values())[-1]) from exc

        try:
            updated = await self.store.increment(Player, {"total_xp": total_xp}, address=trimmed)
        finally:
            await self._enqueue_fish_grants(fish_tx_hashes)
            await enqueue_transaction(self.store, player_tx_hash, EntityType.PLAYER, trimmed)
        if updated == 0:
            msg = f"Player with address {trimmed} not found"
            raise NotFoundError(msg)

        logger.info(
            "fish_fed",
            owner=trimmed,
            fish_ids=list(fish_ids),
            xp_per_fish=xp_per_fish,
            total_xp=total_xp,
            multiplier_percent=multiplier_percent,
            tx_hash=player_tx_hash,
        )
        return FeedResult(
            player_tx_hash=player_tx_hash,
            fish_tx_hashes=fish_tx_hashes,
            xp_per_fish=xp_per_fish,
            total_xp=total_xp,
            multiplier_percent=multiplier_percent,
            tank_id=tank_id,
        )

    async def _enqueue_fish_grants(self, fish_tx_hashes: dict[int, str]) -> None:
        for fish_id, tx_hash in fish_tx_hashes.items():
            await enqueue_transaction(self.store, tx_hash, EntityType.FISH, fish_id)

    # ── Breeding ──

    async def breed_fish(self, fish1_id: int, fish2_id: int, owner: str) -> FishView:
        """
        Breed two adult fish into the owner's first tank.

        The offspring copies parent 1's species and artwork.

        Raises:
            ValidationError: Self-breeding, bad input, wrong owner, not adult,
                or not ready to breed.
            NotFoundError: A parent does not exist or the owner has no tank.
            ConflictError: The tank is full.
            OnChainError: A ledger query or the breed call failed.
            OffChainCommitError: Breeding landed on-chain but saving the
                offspring failed; the offspring row was removed again.
        """
        if fish1_id == fish2_id:
            msg = "Cannot breed a fish with itself"
            raise ValidationError(msg)
        validate_id(fish1_id, "fish1_id")
        validate_id(fish2_id, "fish2_id")
        trimmed = validate_address(owner, "Owner address")

        parent1 = await self.get_fish_by_id(fish1_id)
        parent2 = await self.get_fish_by_id(fish2_id)

        for parent in (parent1, parent2):
            if parent.owner != trimmed:
                msg = f"Fish with ID {parent.id} does not belong to owner {trimmed}"
                raise ValidationError(msg)
        for parent in (parent1, parent2):
            if parent.state != FishState.ADULT.value:
                msg = f"Fish with ID {parent.id} is not an adult (current state: {parent.state})"
                raise ValidationError(msg)
        for parent in (parent1, parent2):
            if not parent.ready_to_breed:
                msg = f"Fish with ID {parent.id} is not ready to breed"
                raise ValidationError(msg)

        tank_id = await self.tanks.get_first_tank_id_by_owner(trimmed)
        if tank_id is None:
            msg = f"Owner {trimmed} has no tank. Cannot breed fish without a tank."
            raise NotFoundError(msg)
        await self.tanks.check_tank_capacity(tank_id, 1)

        try:
            bred = await self.ledger.breed_fish(fish1_id, fish2_id)
        except LedgerError as exc:
            logger.error("fish_breed_onchain_failed", fish1_id=fish1_id, fish2_id=fish2_id, error=str(exc))
            msg = f"Failed to breed fish on-chain: {exc}"
            raise OnChainError(msg) from exc

        offspring_id = bred.entity_id
        offspring = Fish(
            id=offspring_id,
            owner=trimmed,
            species=parent1.species,
            image_url=parent1.image_url,
            tank_id=tank_id,
            parent1_id=fish1_id,
            parent2_id=fish2_id,
        )

        saga = Saga("breed_fish", owner=trimmed, offspring_id=offspring_id, tx_hash=bred.tx_hash)
        try:
            await saga.run(
                "insert_offspring",
                lambda: insert_idempotent(self.store, offspring),
                lambda: self.store.delete(Fish, id=offspring_id),
                compensate_when=bool,
            )
            await saga.run("update_player_stats", lambda: self._count_offspring(trimmed))
        except DomainError as exc:
            failed = await saga.compensate()
            logger.error(
                "fish_breed_rollback",
                owner=trimmed,
                offspring_id=offspring_id,
                tx_hash=bred.tx_hash,
                error=exc.message,
                compensation_failures=failed,
            )
            msg = (
                f"Breeding failed during database save: {exc.message}. "
                f"On-chain breed was successful (tx: {bred.tx_hash}, offspring_id: {offspring_id}). "
                "Rollback attempted."
            )
            raise OffChainCommitError(msg, [bred.tx_hash]) from exc

        await enqueue_transaction(self.store, bred.tx_hash, EntityType.FISH, offspring_id)
        logger.info(
            "fish_bred",
            owner=trimmed,
            parents=[fish1_id, fish2_id],
            offspring_id=offspring_id,
            tank_id=tank_id,
            tx_hash=bred.tx_hash,
        )
        return await self.get_fish_by_id(offspring_id)

    async def _count_offspring(self, address: str) -> None:
        updated = await self.store.increment(
            Player, {"offspring_created": 1, "fish_count": 1}, address=address
        )
        if updated == 0:
            msg = f"Player with address {address} not found"
            raise NotFoundError(msg)
