"""
tests.conftest

Shared fixtures: a file-backed SQLite database, a mongomock-motor collection, and
repositories over both backends with the same logical schema.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient
from sqlalchemy import String
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from repobridge.backends.document import MotorBackend
from repobridge.backends.sql import SQLAlchemyBackend
from repobridge.db.base import Base, RecordMixin
from repobridge.db.init_db import init_db
from repobridge.db.session import create_engine, create_sessionmaker
from repobridge.fields import FieldMapping
from repobridge.repository import Repository
from repobridge.settings import Settings


class Note(RecordMixin, Base):
    __tablename__ = "notes"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    tag: Mapped[str | None] = mapped_column(String(64), nullable=True)
    owner_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


# Both backends expose the related owner as the logical field "owner".
SQL_FIELDS = FieldMapping.for_fields([], references=["owner"])
MONGO_FIELDS = FieldMapping.mongo_defaults().extend(
    FieldMapping.for_fields([], casing="camel", references=["owner"])
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'repobridge-test.db'}",
        log_json=False,
    )


@pytest_asyncio.fixture
async def engine(settings: Settings) -> AsyncIterator[AsyncEngine]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_sessionmaker(engine)


@pytest.fixture
def mongo_collection():
    return AsyncMongoMockClient()["repobridge_test"]["notes"]


@pytest.fixture
def sql_repo(session_factory: async_sessionmaker[AsyncSession]) -> Repository:
    return Repository(SQLAlchemyBackend(Note, session_factory, fields=SQL_FIELDS, name="Note"))


@pytest.fixture
def mongo_repo(mongo_collection) -> Repository:
    return Repository(MotorBackend(mongo_collection, fields=MONGO_FIELDS, name="Note"))


@pytest.fixture(params=["sql", "document"])
def repo(
    request: pytest.FixtureRequest, sql_repo: Repository, mongo_repo: Repository
) -> Repository:
    return sql_repo if request.param == "sql" else mongo_repo
