"""Async SQLAlchemy engine and the session factory behind the relational store."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


async def init_db(url: str) -> None:
    """Create the engine and session factory.

    Pool sizing only applies to PostgreSQL; SQLite URLs (local runs, tests)
    get the driver's default pool.
    """
    global _engine, _session_factory  # noqa: PLW0603
    engine_kwargs: dict[str, object] = {"pool_pre_ping": True, "echo": False}
    if url.startswith("postgresql+asyncpg"):
        engine_kwargs.update(
            pool_size=20,
            max_overflow=10,
            connect_args={"statement_cache_size": 0},
        )
    _engine = create_async_engine(url, **engine_kwargs)
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def close_db() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for :class:`reefsync.db.store.RelationalStore`.

    Raises:
        RuntimeError: Before ``init_db`` has run.
    """
    if _session_factory is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _session_factory
