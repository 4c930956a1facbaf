"""
repobridge.api.deps

FastAPI dependency wiring.

Responsibilities:
- Expose settings, the SQL sessionmaker and the Motor client held on app.state.
- Build request-scoped repositories for SQL models and Mongo collections.
- Parse listing parameters from the query string without coercing them, so
  flags like `archived=false` reach the repository exactly as sent.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.status import HTTP_400_BAD_REQUEST

from repobridge.backends.document import MotorBackend
from repobridge.backends.sql import SQLAlchemyBackend
from repobridge.documents.client import get_collection
from repobridge.errors import UnsupportedQueryError
from repobridge.fields import FieldMapping
from repobridge.repository import Repository
from repobridge.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Stored by `repobridge.api.app.create_app`.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def sql_repository(
    model: type[Any], *, name: str | None = None, fields: FieldMapping | None = None
) -> Callable[..., Repository]:
    def dependency(
        session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
        settings: Settings = Depends(settings_dep),
    ) -> Repository:
        backend = SQLAlchemyBackend(model, session_factory, fields=fields, name=name)
        return Repository(backend, default_limit=settings.default_page_limit)

    return dependency


def document_repository(
    collection: str, *, name: str | None = None, fields: FieldMapping | None = None
) -> Callable[..., Repository]:
    def dependency(request: Request, settings: Settings = Depends(settings_dep)) -> Repository:
        client = request.app.state.mongo_client  # type: ignore[attr-defined]
        backend = MotorBackend(
            get_collection(client, settings, collection), fields=fields, name=name or collection
        )
        return Repository(backend, default_limit=settings.default_page_limit)

    return dependency


def parse_sort(raw: str | None) -> dict[str, int] | None:
    """
    Parse `?sort=-created_at,name` into `{"created_at": -1, "name": 1}`.
    """

    if not raw:
        return None
    sort: dict[str, int] = {}
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        field = token.lstrip("+-")
        if not field:
            raise UnsupportedQueryError(f"invalid sort token {token!r}")
        sort[field] = -1 if token.startswith("-") else 1
    return sort or None


@dataclass(frozen=True)
class ListParams:
    page: str | None
    limit: str | None
    skip: str | None
    archived: str | None
    sort: dict[str, int] | None


def list_params(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    skip: str | None = Query(default=None),
    archived: str | None = Query(default=None),
    sort: str | None = Query(default=None),
) -> ListParams:
    try:
        parsed_sort = parse_sort(sort)
    except UnsupportedQueryError as exc:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return ListParams(page=page, limit=limit, skip=skip, archived=archived, sort=parsed_sort)


# --- Module Notes -----------------------------------------------------------
# Pagination inputs stay strings here; `repobridge.query.to_number` owns coercion so
# HTTP and in-process callers get identical defaults for junk values.
