"""Pydantic request/response models for decoration endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class DecorationOwnerRequest(BaseModel):
    owner: str


class DecorationResponse(BaseModel):
    id: int
    owner: str
    kind: str
    xp_multiplier: int
    is_active: bool
    image_url: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
