"""
repobridge.backends.sql

SQLAlchemy (async ORM) storage backend.

Responsibilities:
- Compile the filter dialect into SQLAlchemy expressions for one mapped model.
- Build a fresh statement per call; no query builder is shared between calls.
- Own session scoping: commit per call, or run inside an attached session.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import Select, and_, delete, func, inspect, not_, or_, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from repobridge.backends.base import Filter, Record
from repobridge.errors import UnsupportedQueryError
from repobridge.fields import FieldMapping


class SQLAlchemyBackend:
    def __init__(
        self,
        model: type[Any],
        session_factory: async_sessionmaker[AsyncSession],
        *,
        fields: FieldMapping | None = None,
        name: str | None = None,
    ) -> None:
        self._model = model
        self._session_factory = session_factory
        self.fields = fields or FieldMapping.identity()
        self.name = name or model.__name__
        self._columns: dict[str, Any] = {
            attr.key: getattr(model, attr.key) for attr in inspect(model).column_attrs
        }

    @asynccontextmanager
    async def _scope(self, session: AsyncSession | None) -> AsyncIterator[AsyncSession]:
        if session is not None:
            # Attached session: the caller owns commit/rollback.
            yield session
            return
        async with self._session_factory.begin() as own:
            yield own

    # -- filter compilation --------------------------------------------------

    def _column(self, key: str) -> Any:
        try:
            return self._columns[key]
        except KeyError:
            raise UnsupportedQueryError(f"unknown field {key!r} for {self.name}") from None

    def _where(self, filter: Filter | None) -> ColumnElement[bool]:
        clauses: list[ColumnElement[bool]] = []
        for key, value in (filter or {}).items():
            if key == "$and":
                clauses.append(and_(true(), *(self._where(c) for c in value)))
            elif key == "$or":
                clauses.append(or_(*(self._where(c) for c in value)) if value else true())
            elif key == "$nor":
                clauses.append(not_(or_(*(self._where(c) for c in value))) if value else true())
            elif key.startswith("$"):
                raise UnsupportedQueryError(f"unsupported operator {key!r}")
            else:
                clauses.extend(self._field_clauses(self._column(key), value))
        return and_(true(), *clauses)

    def _field_clauses(self, column: Any, value: Any) -> list[ColumnElement[bool]]:
        if not _is_operator_doc(value):
            return [column.is_(None) if value is None else column == value]

        clauses: list[ColumnElement[bool]] = []
        for op, operand in value.items():
            if op == "$eq":
                clauses.append(column.is_(None) if operand is None else column == operand)
            elif op == "$ne":
                # Mongo semantics: NULL/missing is "not equal" to any concrete value.
                if operand is None:
                    clauses.append(column.is_not(None))
                else:
                    clauses.append(or_(column != operand, column.is_(None)))
            elif op == "$gt":
                clauses.append(column > operand)
            elif op == "$gte":
                clauses.append(column >= operand)
            elif op == "$lt":
                clauses.append(column < operand)
            elif op == "$lte":
                clauses.append(column <= operand)
            elif op == "$in":
                values = [v for v in operand if v is not None]
                clause = column.in_(values)
                clauses.append(or_(clause, column.is_(None)) if None in operand else clause)
            elif op == "$nin":
                values = [v for v in operand if v is not None]
                clause = column.not_in(values)
                clauses.append(
                    and_(clause, column.is_not(None))
                    if None in operand
                    else or_(clause, column.is_(None))
                )
            elif op == "$exists":
                clauses.append(column.is_not(None) if operand else column.is_(None))
            else:
                raise UnsupportedQueryError(f"unsupported operator {op!r}")
        return clauses

    def _select(self, projection: Sequence[str] | None) -> Select[Any]:
        if projection:
            return select(*(self._column(key) for key in projection))
        return select(self._model)

    def _order(self, stmt: Select[Any], sort: Mapping[str, int] | None) -> Select[Any]:
        for key, order in (sort or {}).items():
            column = self._column(key)
            stmt = stmt.order_by(column.desc() if order < 0 else column.asc())
        return stmt

    def _to_record(self, obj: Any) -> Record:
        return {key: getattr(obj, key) for key in self._columns}

    # -- operations ----------------------------------------------------------

    async def count(self, filter: Filter, *, session: AsyncSession | None = None) -> int:
        stmt = select(func.count()).select_from(self._model).where(self._where(filter))
        async with self._scope(session) as s:
            return int((await s.execute(stmt)).scalar_one())

    async def find(
        self,
        filter: Filter,
        *,
        limit: int = 0,
        offset: int = 0,
        sort: Mapping[str, int] | None = None,
        projection: Sequence[str] | None = None,
        session: AsyncSession | None = None,
    ) -> list[Record]:
        stmt = self._order(self._select(projection).where(self._where(filter)), sort)
        # Bulk statements skip the identity map; reloads in an attached session must not
        # return stale instances.
        stmt = stmt.execution_options(populate_existing=True)
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)
        async with self._scope(session) as s:
            result = await s.execute(stmt)
            if projection:
                return [dict(row._mapping) for row in result]
            return [self._to_record(obj) for obj in result.scalars().all()]

    async def find_one(
        self,
        filter: Filter,
        *,
        sort: Mapping[str, int] | None = None,
        projection: Sequence[str] | None = None,
        session: AsyncSession | None = None,
    ) -> Record | None:
        rows = await self.find(filter, limit=1, sort=sort, projection=projection, session=session)
        return rows[0] if rows else None

    async def insert(
        self, attributes: Mapping[str, Any], *, session: AsyncSession | None = None
    ) -> Record:
        async with self._scope(session) as s:
            obj = self._model(**attributes)
            s.add(obj)
            await s.flush()
            # Pull server/default-populated columns without relying on lazy loads.
            await s.refresh(obj)
            return self._to_record(obj)

    async def update_one(
        self,
        filter: Filter,
        patch: Mapping[str, Any],
        *,
        session: AsyncSession | None = None,
    ) -> Record | None:
        self._check_patch(patch)
        stmt = select(self._model).where(self._where(filter)).limit(1).with_for_update()
        async with self._scope(session) as s:
            obj = (await s.execute(stmt)).scalars().first()
            if obj is None:
                return None
            for key, value in patch.items():
                setattr(obj, key, value)
            await s.flush()
            await s.refresh(obj)
            return self._to_record(obj)

    async def update_many(
        self,
        filter: Filter,
        patch: Mapping[str, Any],
        *,
        session: AsyncSession | None = None,
    ) -> int:
        self._check_patch(patch)
        stmt = (
            update(self._model)
            .where(self._where(filter))
            .values(**patch)
            .execution_options(synchronize_session=False)
        )
        async with self._scope(session) as s:
            result = await s.execute(stmt)
            return int(result.rowcount or 0)

    async def delete_one(self, filter: Filter, *, session: AsyncSession | None = None) -> int:
        stmt = select(self._model).where(self._where(filter)).limit(1)
        async with self._scope(session) as s:
            obj = (await s.execute(stmt)).scalars().first()
            if obj is None:
                return 0
            await s.delete(obj)
            await s.flush()
            return 1

    async def delete_many(self, filter: Filter, *, session: AsyncSession | None = None) -> int:
        stmt = (
            delete(self._model)
            .where(self._where(filter))
            .execution_options(synchronize_session=False)
        )
        async with self._scope(session) as s:
            result = await s.execute(stmt)
            return int(result.rowcount or 0)

    async def distinct(
        self, field: str, filter: Filter, *, session: AsyncSession | None = None
    ) -> list[Any]:
        stmt = select(self._column(field)).distinct().where(self._where(filter))
        async with self._scope(session) as s:
            return list((await s.execute(stmt)).scalars().all())

    def _check_patch(self, patch: Mapping[str, Any]) -> None:
        for key in patch:
            if key.startswith("$"):
                raise UnsupportedQueryError(f"update operator {key!r} is not supported by SQL")
            self._column(key)


def _is_operator_doc(value: Any) -> bool:
    return isinstance(value, Mapping) and bool(value) and all(str(k).startswith("$") for k in value)


# --- Module Notes -----------------------------------------------------------
# `with_for_update` is a no-op on SQLite and a row lock on PostgreSQL/MySQL, which keeps
# read-modify-write updates consistent without any locking in the repository itself.
