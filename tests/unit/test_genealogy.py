"""Family tree resolution tests."""

import pytest
import pytest_asyncio

from reefsync.db.models import Fish
from reefsync.errors import NotFoundError, ValidationError
from reefsync.fish import genealogy
from reefsync.fish.genealogy import build_family_tree
from tests.conftest import OWNER


@pytest_asyncio.fixture
async def lineage(add_player, add_fish):
    """Three generations.

        1   2   3   4
         \\ /     \\ /
          5       6
           \\     /
              7
              |
              8
    """
    await add_player(OWNER)
    for fish_id in (1, 2, 3, 4):
        await add_fish(fish_id, OWNER)
    await add_fish(5, OWNER, parent1_id=1, parent2_id=2)
    await add_fish(6, OWNER, parent1_id=3, parent2_id=4)
    await add_fish(7, OWNER, parent1_id=5, parent2_id=6)
    await add_fish(8, OWNER, parent1_id=7, parent2_id=None)


class TestBuildFamilyTree:
    @pytest.mark.asyncio
    async def test_fish_without_relatives(self, store, add_player, add_fish):
        await add_player(OWNER)
        await add_fish(1, OWNER)

        tree = await build_family_tree(store, 1)

        assert [(m.id, m.generation) for m in tree.ancestors] == [(1, 0)]
        assert tree.descendants == []
        assert tree.generation_count == 0
        assert tree.descendant_generation_count == 0

    @pytest.mark.asyncio
    async def test_ancestors_by_generation(self, store, lineage):
        tree = await build_family_tree(store, 7)

        generations = {m.id: m.generation for m in tree.ancestors}
        assert generations == {7: 0, 5: 1, 6: 1, 1: 2, 2: 2, 3: 2, 4: 2}
        assert [m.generation for m in tree.ancestors] == sorted(m.generation for m in tree.ancestors)
        assert tree.ancestors[0].id == 7
        assert tree.generation_count == 2

    @pytest.mark.asyncio
    async def test_descendants_by_generation(self, store, lineage):
        tree = await build_family_tree(store, 1)

        assert [(m.id, m.generation) for m in tree.descendants] == [(5, 1), (7, 2), (8, 3)]
        assert tree.descendant_generation_count == 3

    @pytest.mark.asyncio
    async def test_members_carry_parent_ids(self, store, lineage):
        tree = await build_family_tree(store, 8)

        by_id = {m.id: m for m in tree.ancestors}
        assert by_id[8].parent1_id == 7
        assert by_id[8].parent2_id is None
        assert (by_id[5].parent1_id, by_id[5].parent2_id) == (1, 2)

    @pytest.mark.asyncio
    async def test_shared_ancestor_appears_once(self, store, add_player, add_fish):
        await add_player(OWNER)
        await add_fish(1, OWNER)
        await add_fish(2, OWNER)
        await add_fish(3, OWNER, parent1_id=1, parent2_id=2)
        await add_fish(4, OWNER, parent1_id=1, parent2_id=2)
        await add_fish(5, OWNER, parent1_id=3, parent2_id=4)

        tree = await build_family_tree(store, 5)

        ids = [m.id for m in tree.ancestors]
        assert sorted(ids) == [1, 2, 3, 4, 5]
        assert len(ids) == len(set(ids))

    @pytest.mark.asyncio
    async def test_cycle_terminates(self, store, add_player, add_fish):
        await add_player(OWNER)
        await add_fish(1, OWNER)
        await add_fish(2, OWNER, parent1_id=1)
        await store.update(Fish, {"parent1_id": 2}, id=1)

        tree = await build_family_tree(store, 1)

        assert [m.id for m in tree.ancestors] == [1, 2]
        assert [m.id for m in tree.descendants] == [2]

    @pytest.mark.asyncio
    async def test_depth_limit(self, store, lineage, monkeypatch):
        monkeypatch.setattr(genealogy, "MAX_GENERATION_DEPTH", 1)

        with pytest.raises(ValidationError, match="Max ancestor depth exceeded"):
            await build_family_tree(store, 7)

        with pytest.raises(ValidationError, match="Max descendant depth exceeded"):
            await build_family_tree(store, 1)

    @pytest.mark.asyncio
    async def test_missing_fish(self, store):
        with pytest.raises(NotFoundError, match="Fish with ID 99 not found"):
            await build_family_tree(store, 99)

    @pytest.mark.asyncio
    async def test_invalid_id(self, store):
        with pytest.raises(ValidationError, match="Invalid fish ID"):
            await build_family_tree(store, 0)
