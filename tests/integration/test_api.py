"""End-to-end API tests: a player's lifecycle from registration to breeding."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from reefsync.errors import DatabaseError
from reefsync.ledger.client import LedgerError
from tests.conftest import ADULT_XP, OTHER_OWNER, OWNER


class TestPlayersApi:
    @pytest.mark.asyncio
    async def test_register_and_fetch(self, client: AsyncClient) -> None:
        """POST /players registers with a starter pack; GET returns the same row."""
        response = await client.post("/api/v1/players", json={"address": OWNER})
        assert response.status_code == 200
        data = response.json()
        assert data["address"] == OWNER
        assert data["fish_count"] == 2
        assert data["total_xp"] == 0

        response = await client.get(f"/api/v1/players/{OWNER}")
        assert response.status_code == 200
        assert response.json()["fish_count"] == 2

    @pytest.mark.asyncio
    async def test_register_is_idempotent(self, client: AsyncClient) -> None:
        first = await client.post("/api/v1/players", json={"address": OWNER})
        second = await client.post("/api/v1/players", json={"address": OWNER})

        assert second.status_code == 200
        assert second.json()["created_at"] == first.json()["created_at"]

        fish = await client.get(f"/api/v1/players/{OWNER}/fish")
        assert len(fish.json()) == 2

    @pytest.mark.asyncio
    async def test_invalid_address(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/players", json={"address": "0xnope"})
        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid Starknet address format", "type": "ValidationError"}

    @pytest.mark.asyncio
    async def test_unknown_player(self, client: AsyncClient) -> None:
        response = await client.get(f"/api/v1/players/{OTHER_OWNER}")
        assert response.status_code == 404
        assert response.json()["type"] == "NotFoundError"

    @pytest.mark.asyncio
    async def test_register_onchain_failure(self, client: AsyncClient, ledger, monkeypatch) -> None:
        monkeypatch.setattr(ledger, "register_player", AsyncMock(side_effect=LedgerError("rpc down")))

        response = await client.post("/api/v1/players", json={"address": OWNER})
        assert response.status_code == 500
        assert response.json()["type"] == "OnChainError"

    @pytest.mark.asyncio
    async def test_starter_pack_endpoint(self, client: AsyncClient, add_player) -> None:
        await add_player(OWNER)

        response = await client.post(f"/api/v1/players/{OWNER}/starter-pack")
        assert response.status_code == 201
        data = response.json()
        assert data["tank_id"] == 1
        assert data["fish_ids"] == [1, 2]
        assert len(data["fish_tx_hashes"]) == 2

        again = await client.post(f"/api/v1/players/{OWNER}/starter-pack")
        assert again.status_code == 409
        assert again.json()["type"] == "ConflictError"

    @pytest.mark.asyncio
    async def test_starter_pack_rollback_reports_hashes(
        self, client: AsyncClient, store, add_player, monkeypatch
    ) -> None:
        await add_player(OWNER)
        monkeypatch.setattr(store, "update", AsyncMock(side_effect=DatabaseError("disk full")))

        response = await client.post(f"/api/v1/players/{OWNER}/starter-pack")
        assert response.status_code == 500
        data = response.json()
        assert data["type"] == "OffChainCommitError"
        assert len(data["tx_hashes"]) == 3
        assert "Rollback attempted" in data["detail"]

    @pytest.mark.asyncio
    async def test_list_fish_for_unknown_player(self, client: AsyncClient) -> None:
        response = await client.get(f"/api/v1/players/{OWNER}/fish")
        assert response.status_code == 404


class TestFishApi:
    @pytest.mark.asyncio
    async def test_get_fish_merges_both_sides(self, client: AsyncClient, registered_owner) -> None:
        response = await client.get("/api/v1/fish/1")
        assert response.status_code == 200
        data = response.json()
        assert data["owner"] == OWNER
        assert data["species"] == "Starter Fish"
        assert data["tank_id"] == 1
        assert data["state"] == "Baby"
        assert data["hunger"] == 50
        assert data["dna"].startswith("0x")

    @pytest.mark.asyncio
    async def test_fish_id_must_be_integer(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/fish/abc")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_feed(self, client: AsyncClient, registered_owner) -> None:
        response = await client.post("/api/v1/fish/feed", json={"fish_ids": [1, 2], "owner": OWNER})
        assert response.status_code == 200
        data = response.json()
        assert data["xp_per_fish"] == 10
        assert data["total_xp"] == 20
        assert set(data["fish_tx_hashes"]) == {"1", "2"}

        player = await client.get(f"/api/v1/players/{OWNER}")
        assert player.json()["total_xp"] == 20

        fish = await client.get("/api/v1/fish/1")
        assert fish.json()["xp"] == 10

    @pytest.mark.asyncio
    async def test_feed_with_active_decoration(self, client: AsyncClient, registered_owner, add_decoration) -> None:
        await add_decoration(1, OWNER, "Statue")

        activated = await client.post("/api/v1/decorations/1/activate", json={"owner": OWNER})
        assert activated.status_code == 200
        assert activated.json()["is_active"] is True

        response = await client.post("/api/v1/fish/feed", json={"fish_ids": [1], "owner": OWNER})
        assert response.json()["multiplier_percent"] == 10
        assert response.json()["xp_per_fish"] == 11

    @pytest.mark.asyncio
    async def test_feed_foreign_fish(self, client: AsyncClient, registered_owner) -> None:
        await client.post("/api/v1/players", json={"address": OTHER_OWNER})

        response = await client.post("/api/v1/fish/feed", json={"fish_ids": [3], "owner": OWNER})
        assert response.status_code == 400
        assert "do not belong" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_breed_and_family(self, client: AsyncClient, adult_pair) -> None:
        response = await client.post("/api/v1/fish/breed", json={"fish1_id": 1, "fish2_id": 2, "owner": OWNER})
        assert response.status_code == 201
        offspring = response.json()
        assert offspring["id"] == 3
        assert offspring["parent1_id"] == 1
        assert offspring["parent2_id"] == 2

        family = await client.get("/api/v1/fish/3/family")
        assert family.status_code == 200
        tree = family.json()
        assert tree["fish_id"] == 3
        assert tree["generation_count"] == 1
        assert [m["id"] for m in tree["ancestors"]][0] == 3
        assert {m["id"] for m in tree["ancestors"]} == {1, 2, 3}

        tank = await client.get("/api/v1/tanks/1")
        assert [f["id"] for f in tank.json()["fish"]] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_breed_babies_rejected(self, client: AsyncClient, registered_owner) -> None:
        response = await client.post("/api/v1/fish/breed", json={"fish1_id": 1, "fish2_id": 2, "owner": OWNER})
        assert response.status_code == 400
        assert "not an adult" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_breed_full_tank(self, client: AsyncClient, adult_pair, add_fish) -> None:
        for fish_id in range(10, 18):
            await add_fish(fish_id, OWNER, tank_id=1)

        response = await client.post("/api/v1/fish/breed", json={"fish1_id": 1, "fish2_id": 2, "owner": OWNER})
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_breed_grown_offspring(self, client: AsyncClient, ledger, adult_pair) -> None:
        """A bred fish can itself breed once it reaches adulthood."""
        await client.post("/api/v1/fish/breed", json={"fish1_id": 1, "fish2_id": 2, "owner": OWNER})
        await ledger.grant_fish_xp(3, ADULT_XP)

        response = await client.post("/api/v1/fish/breed", json={"fish1_id": 3, "fish2_id": 1, "owner": OWNER})
        assert response.status_code == 201
        assert response.json()["id"] == 4

        family = await client.get("/api/v1/fish/4/family")
        assert family.json()["generation_count"] == 2


class TestTanksApi:
    @pytest.mark.asyncio
    async def test_get_tank(self, client: AsyncClient, registered_owner) -> None:
        response = await client.get("/api/v1/tanks/1")
        assert response.status_code == 200
        data = response.json()
        assert data["capacity"] == 10
        assert data["name"] == "Starter Tank"
        assert len(data["fish"]) == 2

    @pytest.mark.asyncio
    async def test_unknown_tank(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/tanks/9")
        assert response.status_code == 404


class TestDecorationsApi:
    @pytest.mark.asyncio
    async def test_get_and_toggle(self, client: AsyncClient, add_player, add_decoration) -> None:
        await add_player(OWNER)
        await add_decoration(2, OWNER, "Plant")

        response = await client.get("/api/v1/decorations/2")
        assert response.status_code == 200
        assert response.json()["xp_multiplier"] == 5

        deactivate = await client.post("/api/v1/decorations/2/deactivate", json={"owner": OWNER})
        assert deactivate.status_code == 409

        activate = await client.post("/api/v1/decorations/2/activate", json={"owner": OWNER})
        assert activate.status_code == 200

        deactivate = await client.post("/api/v1/decorations/2/deactivate", json={"owner": OWNER})
        assert deactivate.status_code == 200
        assert deactivate.json()["is_active"] is False

    @pytest.mark.asyncio
    async def test_toggle_wrong_owner(self, client: AsyncClient, add_player, add_decoration) -> None:
        await add_player(OWNER)
        await add_decoration(2, OWNER, "Plant")

        response = await client.post("/api/v1/decorations/2/activate", json={"owner": OTHER_OWNER})
        assert response.status_code == 400
