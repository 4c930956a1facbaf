"""
repobridge.repository

Backend-agnostic repository: the CRUD/query contract application code uses.

Responsibilities:
- Translate logical names to the backend's physical schema and back.
- Apply archival (soft-delete) filtering, default sort and pagination shaping.
- Stamp lifecycle timestamps and raise `ModelNotFoundError` for empty single-record
  operations.
- Carry an optional per-instance DB session/transaction handle to every call.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, Self

from repobridge.backends.base import Record, StorageBackend
from repobridge.errors import ModelNotFoundError
from repobridge.observability.logging import get_logger
from repobridge.query import (
    DEFAULT_LIMIT,
    DEFAULT_SORT,
    ArchivedMode,
    PageWindow,
    Paginated,
    PaginationRequest,
    Sort,
    archived_filter,
    archived_mode,
    merge_filter,
    normalize_sort,
    page_count,
    page_info,
)

log = get_logger(__name__)

Condition = str | Mapping[str, Any]

# Sentinel: pass the query through without any soft-delete clause.
_NO_ARCHIVAL: Any = object()


def _utcnow() -> datetime:
    # Naive UTC at millisecond precision: what BSON dates store, so records read back
    # from either backend carry exactly the stamped value.
    now = datetime.now(UTC).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _next_stamp(previous: Any) -> datetime:
    # Millisecond stamps can collide with the previous write; keep them increasing.
    now = _utcnow()
    if isinstance(previous, datetime) and now <= previous:
        return previous + timedelta(milliseconds=1)
    return now


class Repository:
    def __init__(
        self,
        backend: StorageBackend,
        *,
        name: str | None = None,
        default_limit: int = DEFAULT_LIMIT,
    ) -> None:
        self._backend = backend
        self._fields = backend.fields
        self._default_limit = default_limit
        self._session: Any = None
        self.name = name or backend.name

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def session(self) -> Any:
        return self._session

    # -- sessions --------------------------------------------------------------

    def connect_db_session(self, session: Any) -> Self:
        """
        Run every later call on this instance inside `session`.

        The session is an `AsyncSession` for SQL or an `AsyncIOMotorClientSession` for
        documents. Commit/rollback stay with whoever opened it.
        """

        self._session = session
        return self

    def disconnect_db_session(self) -> Self:
        # Detaching never commits or rolls back.
        self._session = None
        return self

    # -- shaping helpers -------------------------------------------------------

    def _condition(self, condition: Condition) -> dict[str, Any]:
        if isinstance(condition, str):
            return {"id": condition}
        return dict(condition)

    def _filter(self, query: Mapping[str, Any] | None, archived: Any = None) -> dict[str, Any]:
        if archived is not _NO_ARCHIVAL:
            query = merge_filter(query, archived_filter(archived_mode(archived), "deleted_at"))
        return self._fields.translate_filter(query)

    def _sort(self, sort: Sort | None) -> dict[str, int]:
        return normalize_sort(sort, DEFAULT_SORT)

    def _id_filter(self, ids: Sequence[Any]) -> dict[str, Any]:
        return {self._fields.physical("id"): {"$in": list(ids)}}

    def _out(self, record: Record) -> Record:
        return self._fields.to_logical(record)

    def _patch(self, patch: Mapping[str, Any]) -> dict[str, Any]:
        translated: dict[str, Any] = {}
        for key, value in patch.items():
            if key.startswith("$") and isinstance(value, Mapping):
                translated[key] = self._fields.to_physical(value)
            else:
                translated[self._fields.physical(key)] = value
        return translated

    # -- reads -----------------------------------------------------------------

    async def by_id(
        self,
        id: str,
        *,
        archived: Any = None,
        projection: Sequence[str] | None = None,
    ) -> Record:
        """
        Fetch one record by id.

        :raises ModelNotFoundError: when no record matches (soft-deleted records are
            hidden unless `archived` says otherwise).
        """

        return await self.by_query({"id": id}, archived=archived, projection=projection)

    async def by_query(
        self,
        query: Mapping[str, Any],
        *,
        archived: Any = None,
        projection: Sequence[str] | None = None,
        sort: Sort | None = None,
    ) -> Record:
        record = await self._backend.find_one(
            self._filter(query, archived),
            sort=self._fields.translate_sort(self._sort(sort)),
            projection=self._fields.translate_fields(projection),
            session=self._session,
        )
        if record is None:
            raise ModelNotFoundError(self.name, query)
        return self._out(record)

    async def count(self, query: Mapping[str, Any] | None = None) -> int:
        return await self._backend.count(
            self._filter(query, _NO_ARCHIVAL), session=self._session
        )

    async def distinct(self, field: str, query: Mapping[str, Any] | None = None) -> list[Any]:
        return await self._backend.distinct(
            self._fields.physical(field), self._filter(query, _NO_ARCHIVAL), session=self._session
        )

    async def count_distinct(self, field: str, query: Mapping[str, Any] | None = None) -> int:
        return len(await self.distinct(field, query))

    async def exists(self, query: Mapping[str, Any] | None = None) -> bool:
        record = await self._backend.find_one(
            self._filter(query, _NO_ARCHIVAL),
            projection=[self._fields.physical("id")],
            session=self._session,
        )
        return record is not None

    async def all(
        self,
        query: Mapping[str, Any] | None = None,
        *,
        archived: Any = None,
        sort: Sort | None = None,
        projection: Sequence[str] | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[Record]:
        rows = await self._backend.find(
            self._filter(query, archived),
            limit=limit,
            offset=skip,
            sort=self._fields.translate_sort(self._sort(sort)),
            projection=self._fields.translate_fields(projection),
            session=self._session,
        )
        return [self._out(row) for row in rows]

    async def paginate(
        self,
        request: PaginationRequest | Mapping[str, Any],
        *,
        archived: Any = None,
        sort: Sort | None = None,
        projection: Sequence[str] | None = None,
    ) -> Paginated[Record]:
        """
        Same as `all()` but windowed by page/limit, with page metadata.

        `total` and `data` come from two independent reads; under concurrent writes
        they can disagree unless an attached transaction isolates them.
        """

        if not isinstance(request, PaginationRequest):
            request = PaginationRequest(**request)
        window = PageWindow.from_request(request, self._default_limit)
        sort_spec = self._sort(sort)
        db_filter = self._filter(request.query, archived)

        def find() -> Any:
            return self._backend.find(
                db_filter,
                limit=window.limit,
                offset=window.offset,
                sort=self._fields.translate_sort(sort_spec),
                projection=self._fields.translate_fields(projection),
                session=self._session,
            )

        if self._session is None:
            total, rows = await asyncio.gather(
                self._backend.count(db_filter, session=None), find()
            )
        else:
            # A single session/transaction cannot serve two statements at once.
            total = await self._backend.count(db_filter, session=self._session)
            rows = await find()

        log.debug(
            "repository.paginate",
            model=self.name,
            total=total,
            page=window.index + 1,
            limit=window.limit,
        )
        return Paginated(
            data=[self._out(row) for row in rows],
            total=total,
            limit=window.limit,
            offset=window.offset,
            pages=page_count(total, window.limit),
            page=page_info(window, total, len(rows)),
            sort=sort_spec,
        )

    # -- writes ----------------------------------------------------------------

    async def create(self, attributes: Mapping[str, Any]) -> Record:
        now = _utcnow()
        attrs = {"created_at": now, "updated_at": now, "deleted_at": None, **attributes}
        record = self._out(
            await self._backend.insert(self._fields.to_physical(attrs), session=self._session)
        )
        log.info("repository.create", model=self.name, id=str(record.get("id")))
        return record

    async def update(self, condition: Condition, update: Mapping[str, Any]) -> Record:
        """
        Update the first record matching `condition` and return it as stored.

        "First" follows the default sort, the same record `soft_delete` would pick.
        `updated_at` always moves forward, even for writes within one millisecond.

        :raises ModelNotFoundError: when nothing matches.
        """

        query = self._condition(condition)
        existing = await self._first(query)
        if existing is None:
            raise ModelNotFoundError(self.name, query)

        id_field = self._fields.physical("id")
        stamp = _next_stamp(existing.get(self._fields.physical("updated_at")))
        record = await self._backend.update_one(
            {id_field: existing[id_field]},
            self._patch({**update, "updated_at": stamp}),
            session=self._session,
        )
        if record is None:
            # Hard-deleted between the read and the write.
            raise ModelNotFoundError(self.name, query)
        record = self._out(record)
        log.info("repository.update", model=self.name, id=str(record.get("id")))
        return record

    async def update_many(self, condition: Condition, update: Mapping[str, Any]) -> list[Record]:
        # Resolve ids first so the re-read still finds rows whose matched fields changed.
        matched = await self._match(self._condition(condition), _NO_ARCHIVAL)
        if not matched:
            return []
        updated_field = self._fields.physical("updated_at")
        previous = [row[updated_field] for row in matched if row.get(updated_field) is not None]
        ids = [row[self._fields.physical("id")] for row in matched]
        await self._backend.update_many(
            self._id_filter(ids),
            self._patch({**update, "updated_at": _next_stamp(max(previous, default=None))}),
            session=self._session,
        )
        log.info("repository.update_many", model=self.name, matched=len(ids))
        return await self._reload(ids)

    async def soft_delete(self, condition: Condition) -> Record:
        """
        Stamp `deleted_at` on the first record matching `condition`.

        Soft-deleting an already soft-deleted record returns it unchanged.

        :raises ModelNotFoundError: when nothing matches, including records that were
            hard-deleted.
        """

        query = self._condition(condition)
        existing = await self._first(query)
        if existing is None:
            raise ModelNotFoundError(self.name, query)
        if existing.get(self._fields.physical("deleted_at")) is not None:
            return self._out(existing)

        id_field = self._fields.physical("id")
        record = await self._backend.update_one(
            {id_field: existing[id_field]},
            self._patch({"deleted_at": _utcnow()}),
            session=self._session,
        )
        if record is None:
            # Hard-deleted between the read and the stamp.
            raise ModelNotFoundError(self.name, query)
        log.info("repository.soft_delete", model=self.name, id=str(record[id_field]))
        return self._out(record)

    async def soft_delete_many(self, condition: Condition) -> list[Record]:
        matched = await self._match(self._condition(condition), ArchivedMode.exclude_deleted)
        if not matched:
            return []
        ids = [row[self._fields.physical("id")] for row in matched]
        await self._backend.update_many(
            self._id_filter(ids),
            self._patch({"deleted_at": _utcnow()}),
            session=self._session,
        )
        log.info("repository.soft_delete_many", model=self.name, matched=len(ids))
        return await self._reload(ids)

    async def delete(self, condition: Condition) -> None:
        """
        Permanently remove the first record matching `condition`.

        :raises ModelNotFoundError: when nothing matches.
        """

        query = self._condition(condition)
        deleted = await self._backend.delete_one(
            self._filter(query, _NO_ARCHIVAL), session=self._session
        )
        if not deleted:
            raise ModelNotFoundError(self.name, query)
        log.info("repository.delete", model=self.name)

    async def delete_many(self, condition: Condition | None = None) -> int:
        deleted = await self._backend.delete_many(
            self._filter(self._condition(condition or {}), _NO_ARCHIVAL), session=self._session
        )
        log.info("repository.delete_many", model=self.name, deleted=deleted)
        return deleted

    async def _first(self, query: Mapping[str, Any]) -> Record | None:
        # Physical names; callers translate on the way out.
        return await self._backend.find_one(
            self._filter(query, _NO_ARCHIVAL),
            sort=self._fields.translate_sort(self._sort(None)),
            session=self._session,
        )

    async def _match(self, query: Mapping[str, Any], archived: Any) -> list[Record]:
        return await self._backend.find(
            self._filter(query, archived),
            projection=[self._fields.physical("id"), self._fields.physical("updated_at")],
            session=self._session,
        )

    async def _reload(self, ids: Sequence[Any]) -> list[Record]:
        rows = await self._backend.find(
            self._id_filter(ids),
            sort=self._fields.translate_sort(self._sort(None)),
            session=self._session,
        )
        return [self._out(row) for row in rows]


# --- Module Notes -----------------------------------------------------------
# Writes resolve their targets through a fresh filter per call; nothing here holds a
# query object between calls, so concurrent callers on one instance do not interfere
# (beyond sharing an attached session, which the caller chose to share).
