"""
repobridge.backends.base

Capability contract every storage backend implements.

Filters passed to a backend use a small Mongo-style dialect:

- `{"field": value}` equality; `None` matches NULL or a missing field
- `{"field": {"$ne" | "$gt" | "$gte" | "$lt" | "$lte" | "$in" | "$nin" | "$exists": v}}`
- `{"$and": [...]}`, `{"$or": [...]}`, `{"$nor": [...]}`

All names crossing this boundary (filter keys, sort keys, projections, record keys)
are physical names; `fields` maps them back to logical names for the repository.
Every operation takes an optional `session` which the backend threads through to its
driver; the backend itself never stores one.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from repobridge.fields import FieldMapping

Filter = Mapping[str, Any]
Record = dict[str, Any]


@runtime_checkable
class StorageBackend(Protocol):
    name: str
    fields: FieldMapping

    async def count(self, filter: Filter, *, session: Any = None) -> int: ...

    async def find(
        self,
        filter: Filter,
        *,
        limit: int = 0,
        offset: int = 0,
        sort: Mapping[str, int] | None = None,
        projection: Sequence[str] | None = None,
        session: Any = None,
    ) -> list[Record]: ...

    async def find_one(
        self,
        filter: Filter,
        *,
        sort: Mapping[str, int] | None = None,
        projection: Sequence[str] | None = None,
        session: Any = None,
    ) -> Record | None: ...

    async def insert(self, attributes: Mapping[str, Any], *, session: Any = None) -> Record: ...

    async def update_one(
        self, filter: Filter, patch: Mapping[str, Any], *, session: Any = None
    ) -> Record | None: ...

    async def update_many(
        self, filter: Filter, patch: Mapping[str, Any], *, session: Any = None
    ) -> int: ...

    async def delete_one(self, filter: Filter, *, session: Any = None) -> int: ...

    async def delete_many(self, filter: Filter, *, session: Any = None) -> int: ...

    async def distinct(self, field: str, filter: Filter, *, session: Any = None) -> list[Any]: ...


# --- Module Notes -----------------------------------------------------------
# `limit=0` means "no limit" for `find`, matching MongoDB cursor semantics.
