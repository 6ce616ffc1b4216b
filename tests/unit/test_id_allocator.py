"""Id allocator tests: store sync, reset-on-empty and serialized allocation."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from reefsync.db.models import Fish
from reefsync.errors import DatabaseError
from reefsync.ledger.counters import IdAllocator
from tests.conftest import OWNER


class TestIdAllocator:
    """Counters follow the store's MAX(id) and never hand out a value twice."""

    @pytest.mark.asyncio
    async def test_starts_at_one_on_empty_store(self, store):
        allocator = IdAllocator(store)
        assert await allocator.next_id("fish") == 1
        assert await allocator.next_id("tank") == 1

    @pytest.mark.asyncio
    async def test_consecutive_allocations_on_empty_store_keep_counting(self, store):
        allocator = IdAllocator(store)
        assert [await allocator.next_id("fish") for _ in range(3)] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_syncs_past_existing_rows(self, store, add_player, add_fish):
        await add_player(OWNER)
        await add_fish(41, OWNER)

        allocator = IdAllocator(store)
        assert await allocator.next_id("fish") == 42

    @pytest.mark.asyncio
    async def test_picks_up_rows_inserted_elsewhere(self, store, add_player, add_fish):
        await add_player(OWNER)
        allocator = IdAllocator(store)
        assert await allocator.next_id("fish") == 1

        await add_fish(10, OWNER)
        assert await allocator.next_id("fish") == 11

    @pytest.mark.asyncio
    async def test_resets_when_table_emptied(self, store, add_player, add_fish):
        await add_player(OWNER)
        await add_fish(5, OWNER)
        allocator = IdAllocator(store)
        assert await allocator.next_id("fish") == 6

        await store.delete(Fish, id=5)
        assert await allocator.next_id("fish") == 1

    @pytest.mark.asyncio
    async def test_store_failure_uses_in_memory_value(self, store, monkeypatch):
        allocator = IdAllocator(store)
        assert await allocator.next_id("tank") == 1

        monkeypatch.setattr(store, "max_id", AsyncMock(side_effect=DatabaseError("down")))
        assert await allocator.next_id("tank") == 2

    @pytest.mark.asyncio
    async def test_concurrent_allocations_are_unique(self, store):
        allocator = IdAllocator(store)
        ids = await asyncio.gather(*(allocator.next_id("fish") for _ in range(20)))
        assert sorted(ids) == list(range(1, 21))

    @pytest.mark.asyncio
    async def test_unknown_kind(self, store):
        with pytest.raises(ValueError, match="Unknown counter kind"):
            await IdAllocator(store).next_id("decoration")
