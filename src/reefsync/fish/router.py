"""Fish endpoints: /api/v1/fish/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from reefsync.dependencies import get_fish_service
from reefsync.fish.schemas import (
    BreedRequest,
    FamilyTreeResponse,
    FeedRequest,
    FeedResponse,
    FishResponse,
)
from reefsync.fish.service import FishService

router = APIRouter(prefix="/api/v1/fish", tags=["Fish"])


# Static paths first so "/feed" and "/breed" never match "/{fish_id}".


@router.post("/feed", response_model=FeedResponse)
async def feed_fish(
    body: FeedRequest,
    service: FishService = Depends(get_fish_service),
) -> FeedResponse:
    """Feed a batch of fish; every fish gets the same XP."""
    result = await service.feed_fish_batch(body.fish_ids, body.owner)
    return FeedResponse.model_validate(result)


@router.post("/breed", response_model=FishResponse, status_code=201)
async def breed_fish(
    body: BreedRequest,
    service: FishService = Depends(get_fish_service),
) -> FishResponse:
    offspring = await service.breed_fish(body.fish1_id, body.fish2_id, body.owner)
    return FishResponse.model_validate(offspring)


@router.get("/{fish_id}", response_model=FishResponse)
async def get_fish(
    fish_id: int,
    service: FishService = Depends(get_fish_service),
) -> FishResponse:
    fish = await service.get_fish_by_id(fish_id)
    return FishResponse.model_validate(fish)


@router.get("/{fish_id}/family", response_model=FamilyTreeResponse)
async def get_fish_family(
    fish_id: int,
    service: FishService = Depends(get_fish_service),
) -> FamilyTreeResponse:
    tree = await service.get_fish_family(fish_id)
    return FamilyTreeResponse.model_validate(tree)
