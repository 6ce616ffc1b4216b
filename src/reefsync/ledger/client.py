"""
Ledger client contract.

The ledger of record is a remote chain: every write returns a transaction
hash and may fail independently of the relational store. Implementations
raise :class:`LedgerError` for any failed call; the services translate that
into :class:`reefsync.errors.OnChainError`.
"""

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass


class LedgerError(Exception):
    """A ledger call failed or was rejected."""


@dataclass(frozen=True)
class MintResult:
    """Outcome of a mint: the transaction hash and the ledger-assigned id."""

    tx_hash: str
    entity_id: int


@dataclass
class FishOnChain:
    id: int
    xp: int
    state: str
    hunger: int
    ready_to_breed: bool
    dna: str
    owner: str | None = None


@dataclass
class TankOnChain:
    id: int
    owner: str
    capacity: int


@dataclass
class DecorationOnChain:
    id: int
    owner: str
    kind: str
    xp_multiplier: int


def generate_random_dna() -> str:
    """128 random bits as ``0x`` + 32 hex digits."""
    return "0x" + secrets.token_hex(16)


def generate_tx_hash() -> str:
    """A transaction-hash shaped value: ``0x`` + 64 hex digits."""
    return "0x" + secrets.token_hex(32)


class LedgerClient(ABC):
    """Abstract async interface to the on-chain game contracts."""

    @abstractmethod
    async def register_player(self, address: str) -> str:
        """Register a player. Returns the transaction hash."""
        ...

    @abstractmethod
    async def grant_player_xp(self, address: str, amount: int) -> str:
        """Add XP to a player's on-chain total."""
        ...

    @abstractmethod
    async def mint_tank(self, owner: str, capacity: int) -> MintResult:
        ...

    @abstractmethod
    async def mint_fish(self, owner: str, species: str, dna: str) -> MintResult:
        ...

    @abstractmethod
    async def grant_fish_xp(self, fish_id: int, amount: int) -> str:
        ...

    @abstractmethod
    async def breed_fish(self, fish1_id: int, fish2_id: int) -> MintResult:
        """Breed two fish. The offspring id comes back in the result."""
        ...

    @abstractmethod
    async def activate_decoration(self, decoration_id: int) -> str:
        ...

    @abstractmethod
    async def deactivate_decoration(self, decoration_id: int) -> str:
        ...

    @abstractmethod
    async def query_fish(self, fish_id: int) -> FishOnChain:
        ...

    @abstractmethod
    async def query_tank(self, tank_id: int) -> TankOnChain:
        ...

    @abstractmethod
    async def query_decoration(self, decoration_id: int) -> DecorationOnChain:
        ...

    @abstractmethod
    async def ping(self) -> None:
        """Raise :class:`LedgerError` when the ledger is unreachable."""
        ...
