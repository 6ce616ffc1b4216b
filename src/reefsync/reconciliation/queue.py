"""Reconciliation queue writer.

Every on-chain transaction the services submit is recorded in ``sync_queue``
as ``pending`` so an operator (or a future confirmer) can verify it landed.
Recording is best-effort: a failed append must never fail the user-facing
operation that already mutated the ledger.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

import structlog

from reefsync.db.models import SyncQueueEntry
from reefsync.errors import DatabaseError

if TYPE_CHECKING:
    from reefsync.db.store import RelationalStore

logger = structlog.get_logger()


class EntityType(str, Enum):
    PLAYER = "player"
    FISH = "fish"
    TANK = "tank"
    DECORATION = "decoration"


class SyncStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


async def enqueue_transaction(
    store: RelationalStore,
    tx_hash: str,
    entity_type: EntityType,
    entity_id: str | int,
) -> bool:
    """Append a pending reconciliation entry. Returns False when it could not be recorded."""
    entry = SyncQueueEntry(
        tx_hash=tx_hash,
        entity_type=EntityType(entity_type).value,
        entity_id=str(entity_id),
        status=SyncStatus.PENDING.value,
        retry_count=0,
    )
    try:
        await store.insert(entry)
    except DatabaseError as exc:
        logger.warning(
            "reconciliation_enqueue_failed",
            tx_hash=tx_hash,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            error=str(exc),
        )
        return False
    logger.debug("reconciliation_enqueued", tx_hash=tx_hash, entity_type=entry.entity_type)
    return True
