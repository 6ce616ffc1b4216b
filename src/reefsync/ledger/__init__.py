"""Ledger client selection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from reefsync.config import get_settings
from reefsync.ledger.client import LedgerClient, LedgerError

if TYPE_CHECKING:
    from reefsync.db.store import RelationalStore

logger = structlog.get_logger()

__all__ = ["LedgerClient", "LedgerError", "get_ledger_client", "reset_ledger_client"]


def _create_client(store: RelationalStore) -> LedgerClient:
    """Create the ledger client configured by ``REEF_LEDGER_MODE``."""
    settings = get_settings()
    mode = settings.ledger_mode.lower()

    if mode == "stub":
        from reefsync.ledger.stub import StubLedgerClient

        if not settings.ledger_account_address or not settings.ledger_private_key:
            logger.warning("ledger_running_in_stub_mode", reason="account address or private key missing")
        return StubLedgerClient(store, settings)
    msg = f"Unsupported ledger mode: {mode}"
    raise ValueError(msg)


# Module-level singleton
_ledger_client: LedgerClient | None = None


def get_ledger_client(store: RelationalStore) -> LedgerClient:
    """Get or create the ledger client singleton."""
    global _ledger_client  # noqa: PLW0603
    if _ledger_client is None:
        _ledger_client = _create_client(store)
    return _ledger_client


def reset_ledger_client() -> None:
    """Reset the ledger client singleton (for testing)."""
    global _ledger_client  # noqa: PLW0603
    _ledger_client = None
