"""Health, readiness, status and version endpoints."""

import asyncio
import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from reefsync.config import get_settings
from reefsync.db.store import RelationalStore
from reefsync.dependencies import get_ledger, get_store
from reefsync.ledger import LedgerClient
from reefsync.redis_client import ping_redis

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    store: RelationalStore = Depends(get_store),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe: database and Redis connectivity."""
    checks: dict[str, object] = {}

    try:
        await store.ping()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    try:
        await ping_redis()
        checks["redis"] = "ok"
    except Exception as exc:
        checks["redis"] = f"error: {exc}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


async def _probe(name: str, check: object, timeout: float) -> dict[str, str]:
    try:
        await asyncio.wait_for(check, timeout=timeout)  # type: ignore[arg-type]
    except Exception as exc:
        logger.warning("Status check for %s failed: %r", name, exc)
        return {"name": name, "status": "unhealthy", "error": str(exc) or type(exc).__name__}
    return {"name": name, "status": "healthy"}


@router.get("/status")
async def status(
    request: Request,
    store: RelationalStore = Depends(get_store),  # noqa: B008
    ledger: LedgerClient = Depends(get_ledger),  # noqa: B008
) -> dict[str, object]:
    """Dependency status for operators: database and ledger, each bounded by a timeout."""
    settings = get_settings()
    timeout = settings.ledger_status_timeout_seconds

    services = [
        await _probe("database", store.ping(), timeout),
        await _probe("ledger", ledger.ping(), timeout),
    ]

    started = getattr(request.app.state, "started_at", None)
    uptime = time.monotonic() - started if started is not None else 0.0
    return {
        "status": "ok" if all(s["status"] == "healthy" for s in services) else "degraded",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(uptime, 3),
        "services": services,
    }


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
