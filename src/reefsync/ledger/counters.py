"""
Process-wide id counters for ledger-minted fish and tanks.

Each allocation first re-syncs the counter against the relational store's
current ``MAX(id)`` so that rows inserted elsewhere are never reissued and a
table emptied by an operator starts numbering again from 1. The
sync-then-increment pair runs under a per-kind lock, so concurrent mints never
observe the same value.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from reefsync.db.models import Fish, Tank
from reefsync.errors import DatabaseError

if TYPE_CHECKING:
    from reefsync.db.base import Base
    from reefsync.db.store import RelationalStore

logger = structlog.get_logger()

_MODELS: dict[str, type[Base]] = {
    "fish": Fish,
    "tank": Tank,
}


@dataclass
class _CounterState:
    value: int = 0
    last_known_max: int | None = None
    initialized: bool = False


class IdAllocator:
    """Allocates monotonically increasing fish and tank ids."""

    def __init__(self, store: RelationalStore) -> None:
        self._store = store
        self._state = {kind: _CounterState() for kind in _MODELS}
        self._locks = {kind: asyncio.Lock() for kind in _MODELS}

    async def next_id(self, kind: str) -> int:
        """
        Return the next id for ``kind`` ("fish" or "tank").

        Raises:
            ValueError: For an unknown kind.
        """
        if kind not in _MODELS:
            msg = f"Unknown counter kind: {kind}"
            raise ValueError(msg)

        async with self._locks[kind]:
            await self._sync(kind)
            state = self._state[kind]
            state.value += 1
            return state.value

    def current(self, kind: str) -> int:
        """Last id handed out for ``kind`` (0 before the first allocation)."""
        return self._state[kind].value

    async def _sync(self, kind: str) -> None:
        state = self._state[kind]
        try:
            max_id = await self._store.max_id(_MODELS[kind])
        except DatabaseError:
            logger.warning("counter_sync_failed", kind=kind, value=state.value)
            state.initialized = True
            return

        if max_id is None:
            # Only reset when rows existed on a previous sync. Consecutive
            # allocations against an empty table keep counting.
            if not state.initialized or (state.last_known_max is not None and state.last_known_max > 0):
                state.value = 0
                state.last_known_max = None
        else:
            state.value = max(state.value, max_id)
            state.last_known_max = max_id

        if not state.initialized:
            state.initialized = True
            logger.info("counter_initialized", kind=kind, value=state.value)
