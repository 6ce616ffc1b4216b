"""
In-process ledger simulation.

Used until the real contracts are deployed and throughout the test suite.
Transaction hashes are random; ids come from :class:`IdAllocator`; per-entity
state lives in memory. Entities minted before this process started (or by
another process) are hydrated from their relational rows on first access, so
the stub keeps working across restarts.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import structlog

from reefsync.config import Settings, get_settings
from reefsync.db.models import Decoration, Fish, Tank
from reefsync.errors import DatabaseError
from reefsync.ledger.client import (
    DecorationOnChain,
    FishOnChain,
    LedgerClient,
    LedgerError,
    MintResult,
    TankOnChain,
    generate_random_dna,
    generate_tx_hash,
)
from reefsync.ledger.counters import IdAllocator
from reefsync.xp.calculator import FishState, decoration_percentage, determine_fish_state

if TYPE_CHECKING:
    from reefsync.db.store import RelationalStore

logger = structlog.get_logger()

INITIAL_HUNGER = 50


class StubLedgerClient(LedgerClient):
    """Ledger client that simulates contract calls without a chain."""

    def __init__(self, store: RelationalStore, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self.allocator = IdAllocator(store)
        self._players: dict[str, int] = {}
        self._fish: dict[int, FishOnChain] = {}
        self._tanks: dict[int, TankOnChain] = {}
        self._decorations: dict[int, DecorationOnChain] = {}
        self._active_decorations: set[int] = set()

    # --- Players ---

    async def register_player(self, address: str) -> str:
        self._players.setdefault(address, 0)
        tx_hash = generate_tx_hash()
        logger.info("ledger_player_registered", address=address, tx_hash=tx_hash, mode="stub")
        return tx_hash

    async def grant_player_xp(self, address: str, amount: int) -> str:
        self._players[address] = self._players.get(address, 0) + amount
        tx_hash = generate_tx_hash()
        logger.info("ledger_player_xp_granted", address=address, amount=amount, tx_hash=tx_hash, mode="stub")
        return tx_hash

    def player_xp(self, address: str) -> int:
        """On-chain XP total recorded for ``address`` by this process."""
        return self._players.get(address, 0)

    # --- Tanks ---

    async def mint_tank(self, owner: str, capacity: int) -> MintResult:
        tank_id = await self.allocator.next_id("tank")
        self._tanks[tank_id] = TankOnChain(id=tank_id, owner=owner, capacity=capacity)
        tx_hash = generate_tx_hash()
        logger.info("ledger_tank_minted", owner=owner, tank_id=tank_id, capacity=capacity, tx_hash=tx_hash)
        return MintResult(tx_hash=tx_hash, entity_id=tank_id)

    async def query_tank(self, tank_id: int) -> TankOnChain:
        tank = self._tanks.get(tank_id)
        if tank is None:
            row = await self._load(Tank, tank_id)
            tank = TankOnChain(id=tank_id, owner=row.owner, capacity=self._settings.starter_tank_capacity)
            self._tanks[tank_id] = tank
        return replace(tank)

    # --- Fish ---

    async def mint_fish(self, owner: str, species: str, dna: str) -> MintResult:
        fish_id = await self.allocator.next_id("fish")
        self._fish[fish_id] = self._new_fish(fish_id, owner, dna)
        tx_hash = generate_tx_hash()
        logger.info("ledger_fish_minted", owner=owner, fish_id=fish_id, species=species, tx_hash=tx_hash)
        return MintResult(tx_hash=tx_hash, entity_id=fish_id)

    async def grant_fish_xp(self, fish_id: int, amount: int) -> str:
        fish = await self._fish_state(fish_id)
        fish.xp += amount
        fish.state = determine_fish_state(fish.xp).value
        fish.ready_to_breed = fish.state == FishState.ADULT.value
        tx_hash = generate_tx_hash()
        logger.info("ledger_fish_xp_granted", fish_id=fish_id, amount=amount, xp=fish.xp, tx_hash=tx_hash)
        return tx_hash

    async def breed_fish(self, fish1_id: int, fish2_id: int) -> MintResult:
        parent1 = await self._fish_state(fish1_id)
        await self._fish_state(fish2_id)
        offspring_id = await self.allocator.next_id("fish")
        self._fish[offspring_id] = self._new_fish(offspring_id, parent1.owner, generate_random_dna())
        tx_hash = generate_tx_hash()
        logger.info(
            "ledger_fish_bred",
            parents=[fish1_id, fish2_id],
            offspring_id=offspring_id,
            tx_hash=tx_hash,
        )
        return MintResult(tx_hash=tx_hash, entity_id=offspring_id)

    async def query_fish(self, fish_id: int) -> FishOnChain:
        return replace(await self._fish_state(fish_id))

    # --- Decorations ---

    async def activate_decoration(self, decoration_id: int) -> str:
        await self._decoration_state(decoration_id)
        self._active_decorations.add(decoration_id)
        tx_hash = generate_tx_hash()
        logger.info("ledger_decoration_activated", decoration_id=decoration_id, tx_hash=tx_hash)
        return tx_hash

    async def deactivate_decoration(self, decoration_id: int) -> str:
        await self._decoration_state(decoration_id)
        self._active_decorations.discard(decoration_id)
        tx_hash = generate_tx_hash()
        logger.info("ledger_decoration_deactivated", decoration_id=decoration_id, tx_hash=tx_hash)
        return tx_hash

    async def query_decoration(self, decoration_id: int) -> DecorationOnChain:
        return replace(await self._decoration_state(decoration_id))

    async def ping(self) -> None:
        return None

    # --- Internals ---

    @staticmethod
    def _new_fish(fish_id: int, owner: str | None, dna: str) -> FishOnChain:
        return FishOnChain(
            id=fish_id,
            xp=0,
            state=FishState.BABY.value,
            hunger=INITIAL_HUNGER,
            ready_to_breed=False,
            dna=dna,
            owner=owner,
        )

    async def _fish_state(self, fish_id: int) -> FishOnChain:
        fish = self._fish.get(fish_id)
        if fish is None:
            row = await self._load(Fish, fish_id)
            fish = self._new_fish(fish_id, row.owner, generate_random_dna())
            self._fish[fish_id] = fish
        return fish

    async def _decoration_state(self, decoration_id: int) -> DecorationOnChain:
        decoration = self._decorations.get(decoration_id)
        if decoration is None:
            row = await self._load(Decoration, decoration_id)
            decoration = DecorationOnChain(
                id=decoration_id,
                owner=row.owner,
                kind=row.kind,
                xp_multiplier=decoration_percentage(row.kind),
            )
            self._decorations[decoration_id] = decoration
            if row.is_active:
                self._active_decorations.add(decoration_id)
        return decoration

    async def _load(self, model: type[Fish] | type[Tank] | type[Decoration], entity_id: int):
        try:
            row = await self._store.get(model, id=entity_id)
        except DatabaseError as exc:
            msg = f"Ledger state unavailable for {model.__tablename__} {entity_id}"
            raise LedgerError(msg) from exc
        if row is None:
            msg = f"{model.__tablename__} {entity_id} does not exist on-chain"
            raise LedgerError(msg)
        return row
