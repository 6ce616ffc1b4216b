"""Player endpoints: /api/v1/players/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from reefsync.dependencies import get_fish_service, get_player_service
from reefsync.fish.schemas import FishResponse
from reefsync.fish.service import FishService
from reefsync.players.schemas import PlayerResponse, RegisterPlayerRequest, StarterPackResponse
from reefsync.players.service import PlayerService

router = APIRouter(prefix="/api/v1/players", tags=["Players"])


@router.post("", response_model=PlayerResponse)
async def register_player(
    body: RegisterPlayerRequest,
    service: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    """Register a wallet. Repeat calls return the existing player."""
    player = await service.register_player(body.address)
    return PlayerResponse.model_validate(player)


@router.get("/{address}", response_model=PlayerResponse)
async def get_player(
    address: str,
    service: PlayerService = Depends(get_player_service),
) -> PlayerResponse:
    player = await service.get_player_by_address(address)
    return PlayerResponse.model_validate(player)


@router.post("/{address}/starter-pack", response_model=StarterPackResponse, status_code=201)
async def mint_starter_pack(
    address: str,
    service: PlayerService = Depends(get_player_service),
) -> StarterPackResponse:
    result = await service.mint_starter_pack(address)
    return StarterPackResponse.model_validate(result)


@router.get("/{address}/fish", response_model=list[FishResponse])
async def list_player_fish(
    address: str,
    service: FishService = Depends(get_fish_service),
) -> list[FishResponse]:
    """All fish owned by a player, with on-chain state merged in."""
    fish = await service.get_fish_by_owner(address)
    return [FishResponse.model_validate(f) for f in fish]
