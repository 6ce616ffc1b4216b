"""Shared FastAPI dependencies.

Routers never build services themselves; they depend on these providers so
tests can swap the store and ledger with ``app.dependency_overrides``.
"""

from fastapi import Depends

from reefsync.database import get_session_factory
from reefsync.db.store import RelationalStore
from reefsync.decorations.service import DecorationService
from reefsync.fish.service import FishService
from reefsync.ledger import LedgerClient, get_ledger_client
from reefsync.players.service import PlayerService
from reefsync.tanks.service import TankService


def get_store() -> RelationalStore:
    """Relational store bound to the application's session factory."""
    return RelationalStore(get_session_factory())


def get_ledger(store: RelationalStore = Depends(get_store)) -> LedgerClient:  # noqa: B008
    return get_ledger_client(store)


def get_player_service(
    store: RelationalStore = Depends(get_store),  # noqa: B008
    ledger: LedgerClient = Depends(get_ledger),  # noqa: B008
) -> PlayerService:
    return PlayerService(store, ledger)


def get_fish_service(
    store: RelationalStore = Depends(get_store),  # noqa: B008
    ledger: LedgerClient = Depends(get_ledger),  # noqa: B008
) -> FishService:
    return FishService(store, ledger)


def get_tank_service(
    store: RelationalStore = Depends(get_store),  # noqa: B008
    ledger: LedgerClient = Depends(get_ledger),  # noqa: B008
) -> TankService:
    return TankService(store, ledger)


def get_decoration_service(
    store: RelationalStore = Depends(get_store),  # noqa: B008
    ledger: LedgerClient = Depends(get_ledger),  # noqa: B008
) -> DecorationService:
    return DecorationService(store, ledger)
