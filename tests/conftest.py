"""Shared test fixtures.

Each test gets its own SQLite database file (via aiosqlite) with foreign keys
enforced, a fresh stub ledger bound to it, and an HTTP client whose store and
ledger dependencies point at both. Redis is never initialised, so rate
limiting passes requests through.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from reefsync.config import Settings
from reefsync.db import models  # noqa: F401
from reefsync.db.base import Base
from reefsync.db.models import Decoration, Fish, Player, Tank
from reefsync.db.store import RelationalStore
from reefsync.dependencies import get_ledger, get_store
from reefsync.ledger import reset_ledger_client
from reefsync.ledger.stub import StubLedgerClient
from reefsync.main import create_app
from reefsync.players.service import PlayerService

OWNER = "0x" + "a1" * 32
OTHER_OWNER = "0x" + "b2" * 32
ADULT_XP = 350


def fail_on_call(original, call_number: int, exc: Exception):
    """Wrap an async callable so that its ``call_number``-th invocation raises ``exc``."""
    calls = 0

    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        nonlocal calls
        calls += 1
        if calls == call_number:
            raise exc
        return await original(*args, **kwargs)

    return wrapper


def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a throwaway SQLite file with the full schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reef.db'}")
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> RelationalStore:
    return RelationalStore(session_factory)


@pytest.fixture
def ledger(store: RelationalStore, settings: Settings) -> StubLedgerClient:
    return StubLedgerClient(store, settings)


@pytest.fixture
def player_service(store: RelationalStore, ledger: StubLedgerClient, settings: Settings) -> PlayerService:
    return PlayerService(store, ledger, settings)


@pytest_asyncio.fixture
async def registered_owner(player_service: PlayerService) -> str:
    """OWNER registered with a starter pack: tank 1 holding fish 1 and 2."""
    await player_service.register_player(OWNER)
    return OWNER


@pytest_asyncio.fixture
async def adult_pair(registered_owner: str, ledger: StubLedgerClient) -> tuple[int, int]:
    """The starter fish grown to adulthood on the stub ledger."""
    for fish_id in (1, 2):
        await ledger.grant_fish_xp(fish_id, ADULT_XP)
    return 1, 2


@pytest.fixture
def add_player(store: RelationalStore):
    async def _add(address: str, **values: Any) -> Player:
        return await store.insert(Player(address=address, **values))

    return _add


@pytest.fixture
def add_tank(store: RelationalStore):
    async def _add(tank_id: int, owner: str, name: str = "Reef") -> Tank:
        return await store.insert(Tank(id=tank_id, owner=owner, name=name))

    return _add


@pytest.fixture
def add_fish(store: RelationalStore):
    async def _add(fish_id: int, owner: str, **values: Any) -> Fish:
        values.setdefault("species", "Clownfish")
        return await store.insert(Fish(id=fish_id, owner=owner, **values))

    return _add


@pytest.fixture
def add_decoration(store: RelationalStore):
    async def _add(decoration_id: int, owner: str, kind: str, is_active: bool = False) -> Decoration:
        return await store.insert(Decoration(id=decoration_id, owner=owner, kind=kind, is_active=is_active))

    return _add


@pytest_asyncio.fixture
async def client(store: RelationalStore, ledger: StubLedgerClient) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the test store and ledger injected."""
    reset_ledger_client()
    app = create_app()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_ledger] = lambda: ledger

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
