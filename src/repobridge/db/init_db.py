"""
repobridge.db.init_db

DB initialization helper (dev/test convenience).

Responsibilities:
- Create tables for every model registered on `Base.metadata`.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from repobridge.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# --- Module Notes -----------------------------------------------------------
# Production schemas are owned by the application's own migrations.
