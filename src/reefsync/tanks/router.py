"""Tank endpoints: /api/v1/tanks/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from reefsync.dependencies import get_tank_service
from reefsync.tanks.schemas import TankResponse
from reefsync.tanks.service import TankService

router = APIRouter(prefix="/api/v1/tanks", tags=["Tanks"])


@router.get("/{tank_id}", response_model=TankResponse)
async def get_tank(
    tank_id: int,
    service: TankService = Depends(get_tank_service),
) -> TankResponse:
    """Tank with on-chain capacity and the fish currently housed in it."""
    tank = await service.get_tank_by_id(tank_id)
    return TankResponse.model_validate(tank)
