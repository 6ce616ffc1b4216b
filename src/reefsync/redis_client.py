"""Shared Redis client used by rate limiting and the readiness probe."""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20) -> None:
    """Create the shared client. Connections are opened lazily."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Return the shared client.

    Raises:
        RuntimeError: Before ``init_redis`` has run. Callers that can work
            without Redis (rate limiting) treat this as "disabled".
    """
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client


async def ping_redis() -> None:
    """Round-trip a PING; raises on any failure."""
    await get_redis().ping()
