# operator_repo/db/mongodb.py
from __future__ import annotations

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING

from operator_repo.config import settings

_client: Optional[AsyncIOMotorClient] = None


def get_client() -> AsyncIOMotorClient:
    """
    Singleton Motor client. Connection setup is bounded by the server
    selection timeout.
    """
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
        )
    return _client


def get_db() -> AsyncIOMotorDatabase:
    return get_client()[settings.mongo_db]


def get_operator_collection() -> AsyncIOMotorCollection:
    return get_db()[settings.mongo_collection]


async def init_indexes() -> None:
    col = get_operator_collection()
    # non-admin listings filter on the owner and search on the name
    await col.create_index([("userId", ASCENDING)], name="ix_user_id")
    await col.create_index([("name", ASCENDING)], name="ix_name")


async def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
