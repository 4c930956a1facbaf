"""
repobridge.documents.client

Motor client factory.

Responsibilities:
- Create the asyncio MongoDB client from settings.
- Resolve named collections in the configured database.
"""

from __future__ import annotations

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from repobridge.settings import Settings


def create_mongo_client(settings: Settings) -> AsyncIOMotorClient:
    # tz_aware=False: datetimes come back naive UTC, like the SQL backend's.
    return AsyncIOMotorClient(settings.mongo_url, tz_aware=False, uuidRepresentation="standard")


def get_collection(
    client: AsyncIOMotorClient, settings: Settings, name: str
) -> AsyncIOMotorCollection:
    return client[settings.mongo_database][name]


# --- Module Notes -----------------------------------------------------------
# Creating the client does not connect; the first operation does.
