"""
repobridge.backends.document

MongoDB storage backend (Motor).

Responsibilities:
- Pass filters straight through to a Motor collection.
- Wrap flat patches in `$set` and generate string ids on insert.
- Thread an optional client session through every driver call.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorCollection
from pymongo import ReturnDocument

from repobridge.backends.base import Filter, Record
from repobridge.fields import FieldMapping


def _new_id() -> str:
    return str(uuid.uuid4())


class MotorBackend:
    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        *,
        fields: FieldMapping | None = None,
        name: str | None = None,
        id_factory: Callable[[], Any] = _new_id,
    ) -> None:
        self._collection = collection
        self.fields = fields or FieldMapping.mongo_defaults()
        self.name = name or collection.name
        self._id_factory = id_factory

    @staticmethod
    def _opts(session: AsyncIOMotorClientSession | None) -> dict[str, Any]:
        # Only pass `session=` when one is attached; drivers treat absence as "no session".
        return {"session": session} if session is not None else {}

    @staticmethod
    def _projection(projection: Sequence[str] | None) -> dict[str, int] | None:
        if not projection:
            return None
        wanted = {key: 1 for key in projection}
        if "_id" not in wanted:
            wanted["_id"] = 0
        return wanted

    @staticmethod
    def _update_doc(patch: Mapping[str, Any]) -> dict[str, Any]:
        operators = {k: dict(v) for k, v in patch.items() if k.startswith("$")}
        flat = {k: v for k, v in patch.items() if not k.startswith("$")}
        if flat:
            operators["$set"] = {**operators.get("$set", {}), **flat}
        return operators

    async def count(
        self, filter: Filter, *, session: AsyncIOMotorClientSession | None = None
    ) -> int:
        return int(await self._collection.count_documents(dict(filter), **self._opts(session)))

    async def find(
        self,
        filter: Filter,
        *,
        limit: int = 0,
        offset: int = 0,
        sort: Mapping[str, int] | None = None,
        projection: Sequence[str] | None = None,
        session: AsyncIOMotorClientSession | None = None,
    ) -> list[Record]:
        kwargs: dict[str, Any] = {"skip": offset, "limit": limit, **self._opts(session)}
        if sort:
            kwargs["sort"] = list(sort.items())
        cursor = self._collection.find(dict(filter), self._projection(projection), **kwargs)
        return list(await cursor.to_list(length=None))

    async def find_one(
        self,
        filter: Filter,
        *,
        sort: Mapping[str, int] | None = None,
        projection: Sequence[str] | None = None,
        session: AsyncIOMotorClientSession | None = None,
    ) -> Record | None:
        rows = await self.find(filter, limit=1, sort=sort, projection=projection, session=session)
        return rows[0] if rows else None

    async def insert(
        self,
        attributes: Mapping[str, Any],
        *,
        session: AsyncIOMotorClientSession | None = None,
    ) -> Record:
        doc = dict(attributes)
        doc.setdefault("_id", self._id_factory())
        await self._collection.insert_one(doc, **self._opts(session))
        return doc

    async def update_one(
        self,
        filter: Filter,
        patch: Mapping[str, Any],
        *,
        session: AsyncIOMotorClientSession | None = None,
    ) -> Record | None:
        return await self._collection.find_one_and_update(
            dict(filter),
            self._update_doc(patch),
            return_document=ReturnDocument.AFTER,
            **self._opts(session),
        )

    async def update_many(
        self,
        filter: Filter,
        patch: Mapping[str, Any],
        *,
        session: AsyncIOMotorClientSession | None = None,
    ) -> int:
        result = await self._collection.update_many(
            dict(filter), self._update_doc(patch), **self._opts(session)
        )
        return int(result.matched_count)

    async def delete_one(
        self, filter: Filter, *, session: AsyncIOMotorClientSession | None = None
    ) -> int:
        result = await self._collection.delete_one(dict(filter), **self._opts(session))
        return int(result.deleted_count)

    async def delete_many(
        self, filter: Filter, *, session: AsyncIOMotorClientSession | None = None
    ) -> int:
        result = await self._collection.delete_many(dict(filter), **self._opts(session))
        return int(result.deleted_count)

    async def distinct(
        self, field: str, filter: Filter, *, session: AsyncIOMotorClientSession | None = None
    ) -> list[Any]:
        return list(await self._collection.distinct(field, dict(filter), **self._opts(session)))


# --- Module Notes -----------------------------------------------------------
# Mongo stores datetimes with millisecond precision; timestamps read back may be
# truncated relative to the values the repository stamped.
