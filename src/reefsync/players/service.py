"""
Player registration and starter-pack minting.

Per address a player moves UNREGISTERED -> REGISTERED_NO_PACK ->
REGISTERED_WITH_PACK. Starter-pack minting writes the ledger first and the
relational store second: the ledger mints cannot be undone, so an off-chain
failure compensates the rows already inserted and reports the transaction
hashes that now need manual reconciliation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from reefsync.config import Settings, get_settings
from reefsync.db.models import Fish, Player, Tank
from reefsync.db.store import UniqueViolation
from reefsync.errors import (
    ConflictError,
    DatabaseError,
    DomainError,
    NotFoundError,
    OffChainCommitError,
    OnChainError,
    ValidationError,
)
from reefsync.ledger.client import LedgerError, MintResult, generate_random_dna
from reefsync.reconciliation.policy import insert_idempotent
from reefsync.reconciliation.queue import EntityType, enqueue_transaction
from reefsync.reconciliation.saga import Saga
from reefsync.validation import validate_address

if TYPE_CHECKING:
    from reefsync.db.store import RelationalStore
    from reefsync.ledger.client import LedgerClient

logger = structlog.get_logger()


@dataclass
class StarterPackResult:
    tank_id: int
    fish_ids: list[int]
    tank_tx_hash: str
    fish_tx_hashes: list[str] = field(default_factory=list)


class PlayerService:
    """Registration, retrieval and starter-pack minting for players."""

    def __init__(self, store: RelationalStore, ledger: LedgerClient, settings: Settings | None = None) -> None:
        self.store = store
        self.ledger = ledger
        self.settings = settings or get_settings()

    # ── Retrieval ──

    async def get_player_by_address(self, address: str) -> Player:
        """
        Fetch a player row.

        Raises:
            ValidationError: If the address is missing or malformed.
            NotFoundError: If no player is registered at the address.
        """
        trimmed = validate_address(address)
        player = await self.store.get(Player, address=trimmed)
        if player is None:
            msg = f"Player with address {trimmed} not found"
            raise NotFoundError(msg)
        return player

    # ── Registration ──

    async def register_player(self, address: str) -> Player:
        """
        Register a player, or return the existing row unchanged.

        A new player is inserted off-chain first, then registered on-chain,
        then handed a starter pack. A ledger failure raises OnChainError and
        leaves the off-chain row in place; any starter-pack failure is logged
        and the plain player is returned.
        """
        trimmed = validate_address(address)

        existing = await self.store.get(Player, address=trimmed)
        if existing is not None:
            return existing

        try:
            player = await self.store.insert(Player(address=trimmed))
        except UniqueViolation:
            # A concurrent registration won the race; return its row.
            winner = await self.store.get(Player, address=trimmed)
            if winner is None:
                msg = f"Database error: player {trimmed} vanished after a duplicate insert"
                raise DatabaseError(msg) from None
            logger.info("player_registration_raced", address=trimmed)
            return winner

        try:
            tx_hash = await self.ledger.register_player(trimmed)
        except LedgerError as exc:
            logger.error("player_registration_onchain_failed", address=trimmed, error=str(exc))
            msg = f"Failed to register player on-chain: {exc}"
            raise OnChainError(msg) from exc

        await enqueue_transaction(self.store, tx_hash, EntityType.PLAYER, trimmed)
        logger.info("player_registered", address=trimmed, tx_hash=tx_hash)

        try:
            await self.mint_starter_pack(trimmed)
        except Exception:
            logger.exception("starter_pack_failed", address=trimmed)
            return player

        refreshed = await self.store.get(Player, address=trimmed)
        return refreshed or player

    # ── Starter pack ──

    async def mint_starter_pack(self, address: str) -> StarterPackResult:
        """
        Mint one tank and two fish for a registered player without any.

        Raises:
            ValidationError: Bad address, or the player is not registered.
            ConflictError: The player already owns a tank or fish.
            OnChainError: A mint failed; nothing was written off-chain.
            OffChainCommitError: The mints landed but saving them failed; the
                saved rows were removed again.
        """
        trimmed = validate_address(address)

        player = await self.store.get(Player, address=trimmed)
        if player is None:
            msg = "Player not found. Register first before minting starter pack."
            raise ValidationError(msg)

        await self._ensure_no_starter_pack(player)

        tank_mint, fish_mints = await self._mint_onchain(trimmed)
        fish_ids = [mint.entity_id for mint in fish_mints]

        saga = Saga("starter_pack", address=trimmed, tank_id=tank_mint.entity_id, fish_ids=fish_ids)
        try:
            await saga.run(
                "insert_tank",
                lambda: self._insert_tank(trimmed, tank_mint.entity_id),
                lambda: self.store.delete(Tank, id=tank_mint.entity_id),
                compensate_when=bool,
            )
            for index, mint in enumerate(fish_mints, start=1):
                await saga.run(
                    f"insert_fish_{index}",
                    lambda mint=mint: self._insert_fish(trimmed, mint.entity_id, tank_mint.entity_id),
                    lambda mint=mint: self.store.delete(Fish, id=mint.entity_id),
                    compensate_when=bool,
                )
            await saga.run("set_fish_count", lambda: self._set_fish_count(trimmed, len(fish_mints)))
        except DomainError as exc:
            failed = await saga.compensate()
            tx_hashes = [tank_mint.tx_hash, *(mint.tx_hash for mint in fish_mints)]
            logger.error(
                "starter_pack_rollback",
                address=trimmed,
                error=exc.message,
                tx_hashes=tx_hashes,
                compensation_failures=failed,
            )
            msg = (
                f"Starter pack minting failed during database save: {exc.message}. "
                f"On-chain mints were successful (tank_tx: {tank_mint.tx_hash}, "
                f"fish1_tx: {fish_mints[0].tx_hash}, fish2_tx: {fish_mints[1].tx_hash}). "
                "Rollback attempted."
            )
            raise OffChainCommitError(msg, tx_hashes) from exc

        await enqueue_transaction(self.store, tank_mint.tx_hash, EntityType.TANK, tank_mint.entity_id)
        for mint in fish_mints:
            await enqueue_transaction(self.store, mint.tx_hash, EntityType.FISH, mint.entity_id)

        logger.info("starter_pack_minted", address=trimmed, tank_id=tank_mint.entity_id, fish_ids=fish_ids)
        return StarterPackResult(
            tank_id=tank_mint.entity_id,
            fish_ids=fish_ids,
            tank_tx_hash=tank_mint.tx_hash,
            fish_tx_hashes=[mint.tx_hash for mint in fish_mints],
        )

    async def _ensure_no_starter_pack(self, player: Player) -> None:
        # Existence queries rather than the mirrored counter, which may be stale.
        tanks = await self.store.select(Tank, owner=player.address, limit=1)
        if tanks:
            msg = "Player already has a starter pack (tank exists)"
            raise ConflictError(msg)

        fish_count = await self.store.count(Fish, owner=player.address)
        if fish_count > 0:
            msg = f"Player already has a starter pack ({fish_count} fish exist)"
            raise ConflictError(msg)

        if player.fish_count > 0:
            msg = "Player already has a starter pack (fish_count > 0)"
            raise ConflictError(msg)

    async def _mint_onchain(self, address: str) -> tuple[MintResult, list[MintResult]]:
        """Mint tank, fish #1 and fish #2 strictly in order."""
        try:
            tank_mint = await self.ledger.mint_tank(address, self.settings.starter_tank_capacity)
        except LedgerError as exc:
            msg = f"Failed to mint tank on-chain: {exc}"
            raise OnChainError(msg) from exc

        fish_mints: list[MintResult] = []
        last_tx_hash = tank_mint.tx_hash
        for index in (1, 2):
            try:
                mint = await self.ledger.mint_fish(
                    address, self.settings.starter_fish_species, generate_random_dna()
                )
            except LedgerError as exc:
                logger.error("starter_pack_mint_failed", address=address, fish=index, last_tx_hash=last_tx_hash)
                msg = f"Failed to mint fish #{index} on-chain: {exc}"
                raise OnChainError(msg, tx_hash=last_tx_hash) from exc
            fish_mints.append(mint)
            last_tx_hash = mint.tx_hash
        return tank_mint, fish_mints

    async def _insert_tank(self, owner: str, tank_id: int) -> bool:
        return await insert_idempotent(
            self.store, Tank(id=tank_id, owner=owner, name=self.settings.starter_tank_name)
        )

    async def _insert_fish(self, owner: str, fish_id: int, tank_id: int) -> bool:
        return await insert_idempotent(
            self.store,
            Fish(
                id=fish_id,
                owner=owner,
                species=self.settings.starter_fish_species,
                image_url=self.settings.starter_fish_image_url,
                tank_id=tank_id,
            ),
        )

    async def _set_fish_count(self, address: str, fish_count: int) -> None:
        updated = await self.store.update(Player, {"fish_count": fish_count}, address=address)
        if updated == 0:
            msg = f"Failed to update fish_count: player {address} not found"
            raise DatabaseError(msg)
