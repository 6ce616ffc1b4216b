"""Row-level relational store over SQLAlchemy async sessions.

Each call runs in its own session and commits before returning, the same way
a row-level remote store behaves: there is no transaction spanning two calls.
Multi-step workflows that need to undo earlier writes do so explicitly (see
``reefsync.reconciliation.saga``).

``get`` returns ``None`` as the not-found marker, ``insert`` raises
:class:`UniqueViolation` on a duplicate key, and every other SQLAlchemy failure
surfaces as :class:`reefsync.errors.DatabaseError`.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeVar

import structlog
from sqlalchemy import delete, func, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from reefsync.db.base import Base
from reefsync.errors import DatabaseError

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=Base)

_UNIQUE_SQLSTATE = "23505"


class UniqueViolation(DatabaseError):
    """An insert collided with an existing primary key or unique column."""


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == _UNIQUE_SQLSTATE:
        return True
    message = str(orig)
    return "UNIQUE constraint failed" in message or "duplicate key value" in message


def _where(model: type[Base], criteria: Iterable[Any], filters: dict[str, Any]) -> list[Any]:
    clauses = list(criteria)
    for name, value in filters.items():
        column = getattr(model, name)
        if isinstance(value, (list, tuple, set, frozenset)):
            clauses.append(column.in_(list(value)))
        elif value is None:
            clauses.append(column.is_(None))
        else:
            clauses.append(column == value)
    return clauses


class RelationalStore:
    """CRUD, filtering and counting against the off-chain tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, model: type[ModelT], **filters: Any) -> ModelT | None:
        """Fetch a single row matching the equality filters, or None."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(model).where(*_where(model, (), filters)).limit(1))
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            msg = f"Database error when reading {model.__tablename__}: {exc}"
            raise DatabaseError(msg) from exc

    async def select(
        self,
        model: type[ModelT],
        *criteria: Any,
        order_by: Any = None,
        limit: int | None = None,
        **filters: Any,
    ) -> list[ModelT]:
        """Fetch all rows matching the filters.

        Keyword filters are equality tests; list/tuple/set values become
        ``IN`` tests. Positional ``criteria`` are extra SQLAlchemy clauses.
        """
        stmt = select(model).where(*_where(model, criteria, filters))
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            msg = f"Database error when reading {model.__tablename__}: {exc}"
            raise DatabaseError(msg) from exc

    async def insert(self, row: ModelT) -> ModelT:
        """Insert a row and return it with server defaults applied.

        Raises:
            UniqueViolation: If the primary key or a unique column collides.
            DatabaseError: On any other failure.
        """
        table = row.__tablename__
        try:
            async with self._session_factory() as session:
                session.add(row)
                await session.commit()
                return row
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                msg = f"Duplicate key inserting into {table}"
                raise UniqueViolation(msg) from exc
            msg = f"Database error when inserting into {table}: {exc.orig}"
            raise DatabaseError(msg) from exc
        except SQLAlchemyError as exc:
            msg = f"Database error when inserting into {table}: {exc}"
            raise DatabaseError(msg) from exc

    async def update(self, model: type[Base], values: dict[str, Any], **filters: Any) -> int:
        """Apply ``values`` to every matching row. Returns the affected row count."""
        stmt = update(model).where(*_where(model, (), filters)).values(**values)
        return await self._execute_write(model, stmt)

    async def increment(self, model: type[Base], deltas: dict[str, int], **filters: Any) -> int:
        """Atomically add ``deltas`` to integer columns (``SET col = col + n``)."""
        values = {name: getattr(model, name) + amount for name, amount in deltas.items()}
        stmt = update(model).where(*_where(model, (), filters)).values(**values)
        return await self._execute_write(model, stmt)

    async def delete(self, model: type[Base], **filters: Any) -> int:
        """Delete every matching row. Returns the affected row count."""
        if not filters:
            msg = "Refusing to delete without filters"
            raise ValueError(msg)
        stmt = delete(model).where(*_where(model, (), filters))
        return await self._execute_write(model, stmt)

    async def count(self, model: type[Base], *criteria: Any, **filters: Any) -> int:
        """Count rows matching the filters."""
        stmt = select(func.count()).select_from(model).where(*_where(model, criteria, filters))
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return int(result.scalar_one())
        except SQLAlchemyError as exc:
            msg = f"Database error when counting {model.__tablename__}: {exc}"
            raise DatabaseError(msg) from exc

    async def max_id(self, model: type[Base]) -> int | None:
        """Return the largest ``id`` in the table, or None when it is empty."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(func.max(model.id)))  # type: ignore[attr-defined]
                return result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            msg = f"Database error when reading max id of {model.__tablename__}: {exc}"
            raise DatabaseError(msg) from exc

    async def ping(self) -> None:
        """Round-trip a trivial query."""
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            msg = f"Database unreachable: {exc}"
            raise DatabaseError(msg) from exc

    async def _execute_write(self, model: type[Base], stmt: Any) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                return int(result.rowcount or 0)
        except SQLAlchemyError as exc:
            msg = f"Database error when writing {model.__tablename__}: {exc}"
            raise DatabaseError(msg) from exc
