"""Decoration retrieval and activation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from reefsync.db.models import Decoration
from reefsync.errors import ConflictError, DatabaseError, NotFoundError, OnChainError, ValidationError
from reefsync.ledger.client import LedgerError
from reefsync.reconciliation.queue import EntityType, enqueue_transaction
from reefsync.validation import validate_address, validate_id

if TYPE_CHECKING:
    from reefsync.db.store import RelationalStore
    from reefsync.ledger.client import LedgerClient

logger = structlog.get_logger()


@dataclass
class DecorationView:
    # On-chain
    id: int
    owner: str
    kind: str
    xp_multiplier: int
    # Off-chain
    is_active: bool
    image_url: str | None
    created_at: datetime


class DecorationService:
    """Merged decoration views and the activation toggle."""

    def __init__(self, store: RelationalStore, ledger: LedgerClient) -> None:
        self.store = store
        self.ledger = ledger

    async def get_decoration_by_id(self, decoration_id: int) -> DecorationView:
        """
        Raises:
            ValidationError: Invalid id.
            NotFoundError: No off-chain row.
            OnChainError: The ledger query failed.
        """
        validate_id(decoration_id, "decoration ID")

        row = await self.store.get(Decoration, id=decoration_id)
        if row is None:
            msg = f"Decoration with ID {decoration_id} not found"
            raise NotFoundError(msg)

        try:
            on_chain = await self.ledger.query_decoration(decoration_id)
        except LedgerError as exc:
            logger.error("decoration_onchain_query_failed", decoration_id=decoration_id, error=str(exc))
            msg = f"Failed to retrieve on-chain data for decoration {decoration_id}: {exc}"
            raise OnChainError(msg) from exc

        if on_chain.owner != row.owner:
            logger.warning(
                "decoration_owner_mismatch",
                decoration_id=decoration_id,
                off_chain=row.owner,
                on_chain=on_chain.owner,
            )

        return DecorationView(
            id=row.id,
            owner=on_chain.owner,
            kind=on_chain.kind,
            xp_multiplier=on_chain.xp_multiplier,
            is_active=row.is_active,
            image_url=row.image_url,
            created_at=row.created_at,
        )

    async def activate_decoration(self, decoration_id: int, owner: str) -> DecorationView:
        """Activate a decoration so it contributes to its owner's feeding bonus."""
        return await self._set_active(decoration_id, owner, active=True)

    async def deactivate_decoration(self, decoration_id: int, owner: str) -> DecorationView:
        return await self._set_active(decoration_id, owner, active=False)

    async def _set_active(self, decoration_id: int, owner: str, *, active: bool) -> DecorationView:
        validate_id(decoration_id, "decoration ID")
        trimmed = validate_address(owner, "Owner address")

        decoration = await self.get_decoration_by_id(decoration_id)
        if decoration.owner != trimmed:
            msg = f"Decoration with ID {decoration_id} does not belong to owner {trimmed}"
            raise ValidationError(msg)

        state = "active" if active else "inactive"
        if decoration.is_active == active:
            msg = f"Decoration with ID {decoration_id} is already {state}"
            raise ConflictError(msg)

        try:
            if active:
                tx_hash = await self.ledger.activate_decoration(decoration_id)
            else:
                tx_hash = await self.ledger.deactivate_decoration(decoration_id)
        except LedgerError as exc:
            logger.error("decoration_toggle_onchain_failed", decoration_id=decoration_id, active=active, error=str(exc))
            verb = "activate" if active else "deactivate"
            msg = f"Failed to {verb} decoration on-chain: {exc}"
            raise OnChainError(msg) from exc

        try:
            await self.store.update(Decoration, {"is_active": active}, id=decoration_id)
        except DatabaseError as exc:
            logger.error(
                "decoration_toggle_offchain_failed",
                decoration_id=decoration_id,
                active=active,
                tx_hash=tx_hash,
            )
            await enqueue_transaction(self.store, tx_hash, EntityType.DECORATION, decoration_id)
            msg = f"Database error: {exc.message}"
            raise DatabaseError(msg) from exc

        await enqueue_transaction(self.store, tx_hash, EntityType.DECORATION, decoration_id)
        logger.info("decoration_toggled", decoration_id=decoration_id, owner=trimmed, state=state, tx_hash=tx_hash)
        return await self.get_decoration_by_id(decoration_id)
