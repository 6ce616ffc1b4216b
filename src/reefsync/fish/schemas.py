"""Pydantic request/response models for fish endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class FishResponse(BaseModel):
    id: int
    xp: int
    state: str
    hunger: int
    ready_to_breed: bool
    dna: str
    owner: str
    species: str
    image_url: str | None = None
    created_at: datetime
    tank_id: int | None = None
    parent1_id: int | None = None
    parent2_id: int | None = None

    model_config = {"from_attributes": True}


# --- Genealogy ---


class FamilyMemberResponse(BaseModel):
    id: int
    parent1_id: int | None = None
    parent2_id: int | None = None
    generation: int

    model_config = {"from_attributes": True}


class FamilyTreeResponse(BaseModel):
    fish_id: int
    ancestors: list[FamilyMemberResponse]
    descendants: list[FamilyMemberResponse]
    generation_count: int
    descendant_generation_count: int

    model_config = {"from_attributes": True}


# --- Feeding / breeding ---


class FeedRequest(BaseModel):
    fish_ids: list[int]
    owner: str


class FeedResponse(BaseModel):
    player_tx_hash: str
    fish_tx_hashes: dict[int, str]
    xp_per_fish: int
    total_xp: int
    multiplier_percent: int
    tank_id: int | None = None

    model_config = {"from_attributes": True}


class BreedRequest(BaseModel):
    fish1_id: int
    fish2_id: int
    owner: str
