"""Pydantic response models for tank endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class TankFishResponse(BaseModel):
    id: int
    owner: str
    species: str
    image_url: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TankResponse(BaseModel):
    id: int
    capacity: int
    owner: str
    name: str
    sprite_url: str | None = None
    created_at: datetime
    fish: list[TankFishResponse] = []

    model_config = {"from_attributes": True}
