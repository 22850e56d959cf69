"""
SQLAlchemy 2.0 async implementation of ContentStore.

Opens a short-lived session per call so independent reads can run
concurrently under asyncio.gather without sharing a session.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Type, TypeVar

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.kernel.errors import Conflict, UpstreamFailure
from src.kernel.store.base import ContentStore
from src.kernel.store.query import Filter, QuerySpec
from src.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _column(model: Type[Any], name: str):
    column = getattr(model, name, None)
    if column is None:
        raise ValueError(f"{model.__name__} has no field '{name}'")
    return column


def _predicate(model: Type[Any], flt: Filter):
    if flt.op == "ilike_any":
        pattern = f"%{flt.value}%"
        return or_(*(_column(model, name).ilike(pattern) for name in flt.field.split(",")))
    column = _column(model, flt.field)
    if flt.op == "eq":
        return column.is_(None) if flt.value is None else column == flt.value
    if flt.op == "neq":
        return column.is_not(None) if flt.value is None else column != flt.value
    if flt.op == "in":
        return column.in_(list(flt.value))
    if flt.op == "gt":
        return column > flt.value
    if flt.op == "gte":
        return column >= flt.value
    if flt.op == "lt":
        return column < flt.value
    return column <= flt.value


def _primary_key(model: Type[Any]):
    return model.__mapper__.primary_key[0]


class SqlAlchemyStore(ContentStore):
    """ContentStore backed by an async_sessionmaker."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    @asynccontextmanager
    async def _transaction(self, operation: str, model: Type[Any]) -> AsyncIterator[AsyncSession]:
        table = model.__tablename__
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    yield session
        except IntegrityError as exc:
            logger.warning("Constraint violation during %s on %s: %s", operation, table, exc.orig)
            raise Conflict(
                f"Failed to {operation} {table}: constraint violation",
                operation=operation,
            ) from exc
        except SQLAlchemyError as exc:
            logger.error("Store failure during %s on %s: %s", operation, table, exc)
            raise UpstreamFailure(
                f"Failed to {operation} {table}: {exc}",
                operation=operation,
            ) from exc

    def _filtered(self, stmt: Select, model: Type[Any], spec: Optional[QuerySpec]) -> Select:
        if spec is None:
            return stmt
        for flt in spec.filters:
            stmt = stmt.where(_predicate(model, flt))
        return stmt

    async def get(self, model: Type[T], entity_id: Any) -> Optional[T]:
        async with self._transaction("get", model) as session:
            return await session.get(model, entity_id)

    async def select(self, model: Type[T], spec: Optional[QuerySpec] = None) -> List[T]:
        stmt = self._filtered(select(model), model, spec)
        if spec is not None:
            for name, descending in spec.order_by:
                column = _column(model, name)
                stmt = stmt.order_by(column.desc() if descending else column.asc())
            if spec.offset:
                stmt = stmt.offset(spec.offset)
            if spec.limit is not None:
                stmt = stmt.limit(spec.limit)
        async with self._transaction("select", model) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def count(self, model: Type[T], spec: Optional[QuerySpec] = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(model), model, spec)
        async with self._transaction("count", model) as session:
            result = await session.execute(stmt)
            return result.scalar() or 0

    async def insert(self, model: Type[T], values: Dict[str, Any]) -> T:
        async with self._transaction("insert", model) as session:
            row = model(**values)
            session.add(row)
            await session.flush()
            await session.refresh(row)
            return row

    async def update(self, model: Type[T], entity_id: Any, values: Dict[str, Any]) -> Optional[T]:
        async with self._transaction("update", model) as session:
            row = await session.get(model, entity_id)
            if row is None:
                return None
            for name, value in values.items():
                _column(model, name)
                setattr(row, name, value)
            await session.flush()
            await session.refresh(row)
            return row

    async def update_where(
        self,
        model: Type[T],
        spec: QuerySpec,
        values: Dict[str, Any],
    ) -> List[uuid.UUID]:
        pk = _primary_key(model)
        ids_stmt = self._filtered(select(pk), model, spec)
        async with self._transaction("update", model) as session:
            ids = list((await session.execute(ids_stmt)).scalars().all())
            if ids:
                await session.execute(
                    update(model)
                    .where(pk.in_(ids))
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
            return ids

    async def upsert(self, model: Type[T], match: Dict[str, Any], values: Dict[str, Any]) -> T:
        stmt = self._filtered(select(model), model, QuerySpec.where(**match))
        async with self._transaction("upsert", model) as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                row = model(**match, **values)
                session.add(row)
            else:
                for name, value in values.items():
                    setattr(row, name, value)
            await session.flush()
            await session.refresh(row)
            return row
