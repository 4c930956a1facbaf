"""
repobridge.api.routers.crud

Generic CRUD router over a `Repository`.

Responsibilities:
- List (paginated), fetch, create, patch, soft-delete and purge records.
- Map `ModelNotFoundError` to 404 and unsupported queries to 400.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from starlette.status import (
    HTTP_201_CREATED,
    HTTP_204_NO_CONTENT,
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
)

from repobridge.api.deps import ListParams, list_params
from repobridge.errors import ModelNotFoundError, UnsupportedQueryError
from repobridge.fields import LIFECYCLE_FIELDS
from repobridge.query import PaginationRequest
from repobridge.repository import Repository

# Clients may choose an id on create; timestamps are always repository-owned.
_READ_ONLY = frozenset(LIFECYCLE_FIELDS) - {"id"}


@contextmanager
def _http_errors() -> Iterator[None]:
    try:
        yield
    except ModelNotFoundError as exc:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except UnsupportedQueryError as exc:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _writable(body: dict[str, Any], *, allow_id: bool) -> dict[str, Any]:
    blocked = _READ_ONLY if allow_id else _READ_ONLY | {"id"}
    return {key: value for key, value in body.items() if key not in blocked}


def build_crud_router(
    *,
    prefix: str,
    repository: Callable[..., Repository],
    tags: list[str] | None = None,
) -> APIRouter:
    """
    Build a router exposing `repository` under `prefix`.

    `repository` is a FastAPI dependency returning a request-scoped `Repository`,
    e.g. `repobridge.api.deps.sql_repository(Note)`.
    """

    router = APIRouter(prefix=prefix, tags=tags or [prefix.strip("/")])

    @router.get("")
    async def list_records(
        params: ListParams = Depends(list_params),
        repo: Repository = Depends(repository),
    ) -> dict[str, Any]:
        request = PaginationRequest(page=params.page, limit=params.limit, skip=params.skip)
        with _http_errors():
            result = await repo.paginate(request, archived=params.archived, sort=params.sort)
        return result.to_dict()

    @router.get("/{record_id}")
    async def get_record(
        record_id: str,
        archived: str | None = Query(default=None),
        repo: Repository = Depends(repository),
    ) -> dict[str, Any]:
        with _http_errors():
            return await repo.by_id(record_id, archived=archived)

    @router.post("", status_code=HTTP_201_CREATED)
    async def create_record(
        body: dict[str, Any] = Body(...),
        repo: Repository = Depends(repository),
    ) -> dict[str, Any]:
        with _http_errors():
            return await repo.create(_writable(body, allow_id=True))

    @router.patch("/{record_id}")
    async def update_record(
        record_id: str,
        body: dict[str, Any] = Body(...),
        repo: Repository = Depends(repository),
    ) -> dict[str, Any]:
        with _http_errors():
            return await repo.update(record_id, _writable(body, allow_id=False))

    @router.delete("/{record_id}")
    async def soft_delete_record(
        record_id: str,
        repo: Repository = Depends(repository),
    ) -> dict[str, Any]:
        with _http_errors():
            return await repo.soft_delete(record_id)

    @router.delete("/{record_id}/purge", status_code=HTTP_204_NO_CONTENT)
    async def purge_record(
        record_id: str,
        repo: Repository = Depends(repository),
    ) -> Response:
        with _http_errors():
            await repo.delete(record_id)
        return Response(status_code=HTTP_204_NO_CONTENT)

    return router


# --- Module Notes -----------------------------------------------------------
# The router never filters by arbitrary fields from the query string; listing is
# archival flag + pagination + sort only. Richer filtering belongs in an app-specific route.
