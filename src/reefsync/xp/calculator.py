"""XP calculation and fish evolution.

State thresholds (lower edge inclusive):

- Baby:       0 <= xp < 50
- Juvenile:   50 <= xp < 150
- YoungAdult: 150 <= xp < 350
- Adult:      xp >= 350

Decoration bonuses are percentages summed across the owner's active
decorations (10 + 5 -> 15% -> multiplier 0.15), never compounded.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import TYPE_CHECKING

from reefsync.config import get_settings
from reefsync.db.models import Decoration, Tank
from reefsync.errors import DatabaseError, NotFoundError
from reefsync.validation import validate_id

if TYPE_CHECKING:
    from collections.abc import Iterable

    from reefsync.db.store import RelationalStore

logger = logging.getLogger(__name__)


class FishState(str, Enum):
    BABY = "Baby"
    JUVENILE = "Juvenile"
    YOUNG_ADULT = "YoungAdult"
    ADULT = "Adult"


class DecorationKind(str, Enum):
    PLANT = "Plant"
    STATUE = "Statue"
    BACKGROUND = "Background"
    ORNAMENT = "Ornament"


BABY_MAX_XP = 50
JUVENILE_MAX_XP = 150
YOUNG_ADULT_MAX_XP = 350

DECORATION_XP_MULTIPLIERS: dict[str, int] = {
    DecorationKind.PLANT.value: 5,
    DecorationKind.STATUE.value: 10,
    DecorationKind.BACKGROUND.value: 2,
    DecorationKind.ORNAMENT.value: 3,
}


def calculate_fish_xp(base_xp: float, multiplier_percent: float) -> float:
    """Apply a percentage bonus (10 = +10%) to base XP. Negative values debuff; no clamping."""
    return base_xp * (1 + multiplier_percent / 100)


def calculate_player_xp(fish_xp: Iterable[float]) -> float:
    """Total player XP is the plain sum of fish XP."""
    return sum(fish_xp, 0)


def determine_fish_state(xp: float) -> FishState:
    """Classify XP into an evolution state. Negative XP counts as zero."""
    safe_xp = max(0, xp)
    if safe_xp < BABY_MAX_XP:
        return FishState.BABY
    if safe_xp < JUVENILE_MAX_XP:
        return FishState.JUVENILE
    if safe_xp < YOUNG_ADULT_MAX_XP:
        return FishState.YOUNG_ADULT
    return FishState.ADULT


def decoration_percentage(kind: str) -> int:
    """Bonus percentage for one decoration kind; unknown kinds give 0."""
    return DECORATION_XP_MULTIPLIERS.get(kind, 0)


def get_feed_base_xp() -> int:
    """Base XP awarded by one feeding with basic food."""
    return get_settings().feed_base_xp


def to_xp_amount(value: float) -> int:
    """Round a computed XP value half-up to the whole units the ledger accepts."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


async def get_active_decorations_percentage(store: RelationalStore, tank_id: int) -> int:
    """Sum the bonus percentages of the tank owner's active decorations.

    Raises:
        ValidationError: If ``tank_id`` is not a positive integer.
        NotFoundError: If the tank does not exist.
        DatabaseError: If the tank or decorations cannot be read.
    """
    validate_id(tank_id, "tank ID")

    try:
        tank = await store.get(Tank, id=tank_id)
        if tank is None or not tank.owner:
            msg = f"Tank with ID {tank_id} not found"
            raise NotFoundError(msg)

        decorations = await store.select(Decoration, owner=tank.owner, is_active=True)
    except NotFoundError:
        raise
    except DatabaseError:
        logger.error("Failed to calculate decoration XP multiplier for tank %d", tank_id, exc_info=True)
        raise

    return sum(decoration_percentage(row.kind) for row in decorations if row.is_active)


async def get_active_decorations_multiplier(store: RelationalStore, tank_id: int) -> float:
    """Decimal XP multiplier for a tank (15% -> 0.15)."""
    return await get_active_decorations_percentage(store, tank_id) / 100
