"""Decoration endpoints: /api/v1/decorations/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from reefsync.decorations.schemas import DecorationOwnerRequest, DecorationResponse
from reefsync.decorations.service import DecorationService
from reefsync.dependencies import get_decoration_service

router = APIRouter(prefix="/api/v1/decorations", tags=["Decorations"])


@router.get("/{decoration_id}", response_model=DecorationResponse)
async def get_decoration(
    decoration_id: int,
    service: DecorationService = Depends(get_decoration_service),
) -> DecorationResponse:
    decoration = await service.get_decoration_by_id(decoration_id)
    return DecorationResponse.model_validate(decoration)


@router.post("/{decoration_id}/activate", response_model=DecorationResponse)
async def activate_decoration(
    decoration_id: int,
    body: DecorationOwnerRequest,
    service: DecorationService = Depends(get_decoration_service),
) -> DecorationResponse:
    decoration = await service.activate_decoration(decoration_id, body.owner)
    return DecorationResponse.model_validate(decoration)


@router.post("/{decoration_id}/deactivate", response_model=DecorationResponse)
async def deactivate_decoration(
    decoration_id: int,
    body: DecorationOwnerRequest,
    service: DecorationService = Depends(get_decoration_service),
) -> DecorationResponse:
    decoration = await service.deactivate_decoration(decoration_id, body.owner)
    return DecorationResponse.model_validate(decoration)
