"""Insert-conflict policy for ledger-assigned ids.

A retried mint can try to insert a row the first attempt already wrote. If
the existing row belongs to the same owner the insert is treated as already
done; any other collision means two entities share a ledger id and is a hard
conflict.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from reefsync.db.store import UniqueViolation
from reefsync.errors import DatabaseError

if TYPE_CHECKING:
    from reefsync.db.store import ModelT, RelationalStore

logger = structlog.get_logger()


class ConflictResolution(str, Enum):
    ACCEPT_AS_IDEMPOTENT = "accept_as_idempotent"
    HARD_CONFLICT = "hard_conflict"


def resolve_insert_conflict(existing: Any | None, attempted: Any) -> ConflictResolution:
    """Decide what a unique violation on ``attempted`` means given the row already stored."""
    if existing is not None and getattr(existing, "owner", None) == getattr(attempted, "owner", None):
        return ConflictResolution.ACCEPT_AS_IDEMPOTENT
    return ConflictResolution.HARD_CONFLICT


async def insert_idempotent(store: RelationalStore, row: ModelT) -> bool:
    """
    Insert a ledger-keyed row, tolerating a duplicate from an earlier attempt.

    Returns True when this call inserted the row, False when an identical
    owner's row was already present.

    Raises:
        DatabaseError: On a hard conflict or any other store failure.
    """
    model = type(row)
    try:
        await store.insert(row)
        return True
    except UniqueViolation:
        existing = await store.get(model, id=row.id)
        if resolve_insert_conflict(existing, row) is ConflictResolution.ACCEPT_AS_IDEMPOTENT:
            logger.info("insert_already_applied", table=model.__tablename__, id=row.id, owner=row.owner)
            return False
        logger.error(
            "insert_id_conflict",
            table=model.__tablename__,
            id=row.id,
            owner=row.owner,
            existing_owner=getattr(existing, "owner", None),
        )
        msg = f"Database error: {model.__tablename__} ID conflict for ID {row.id}"
        raise DatabaseError(msg) from None
