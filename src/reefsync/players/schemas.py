"""Pydantic request/response models for player endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class RegisterPlayerRequest(BaseModel):
    address: str


class PlayerResponse(BaseModel):
    address: str
    total_xp: int
    fish_count: int
    tournaments_won: int
    reputation: int
    offspring_created: int
    avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StarterPackResponse(BaseModel):
    tank_id: int
    fish_ids: list[int]
    tank_tx_hash: str
    fish_tx_hashes: list[str]

    model_config = {"from_attributes": True}
