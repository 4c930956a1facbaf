"""
repobridge.db.session

Async SQLAlchemy engine + session factory helpers.

Responsibilities:
- Create the async engine from settings.
- Create the async sessionmaker the SQL backend opens per-call sessions from.
- Provide a session scope helper for callers that attach a session to a repository.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from repobridge.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    # pool_pre_ping helps detect stale connections in long-lived processes.
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps records readable after the per-call commit.
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    One transaction shared by every repository the session is attached to.

    Commits on normal exit and rolls back if the block raises.
    """

    async with session_factory() as session:
        async with session.begin():
            yield session


# --- Module Notes -----------------------------------------------------------
# Typical use:
#   async with session_scope(factory) as session:
#       notes.connect_db_session(session)
#       ...
#       notes.disconnect_db_session()
