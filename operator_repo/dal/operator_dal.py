# operator_repo/dal/operator_dal.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from operator_repo.errors import DependencyError, InvalidArgumentError
from operator_repo.models import Operator, OperatorQuery

logger = logging.getLogger("operator_repo.dal.operators")

STORE = "mongodb"
IMMUTABLE_KEYS = ("_id", "userId")

T = TypeVar("T")


def to_object_id(operator_id: str) -> ObjectId:
    try:
        return ObjectId(str(operator_id))
    except (InvalidId, TypeError) as e:
        raise InvalidArgumentError(f"invalid operator id '{operator_id}'") from e


class OperatorDAL:
    """
    Store access for Operator documents.
    Collection: settings.mongo_collection (default 'operators').

    Every call is bounded by `timeout` seconds; driver errors and timeouts
    surface as DependencyError.
    """

    def __init__(self, col: AsyncIOMotorCollection, *, timeout: Optional[float] = None) -> None:
        self.col = col
        self.timeout = timeout

    async def _bounded(self, aw: Awaitable[T], what: str) -> T:
        try:
            return await asyncio.wait_for(aw, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("%s timed out after %ss", what, self.timeout)
            raise DependencyError.wrap(STORE, e) from e
        except PyMongoError as e:
            logger.error("%s failed: %s", what, e)
            raise DependencyError.wrap(STORE, e) from e

    # ---------- reads ---------- #

    async def find(self, query: OperatorQuery) -> List[Operator]:
        async def _collect() -> List[Operator]:
            cursor = self.col.find(query.filter)
            if query.sort:
                cursor = cursor.sort(query.sort)
            cursor = cursor.skip(max(query.skip, 0)).limit(max(query.limit, 0))
            return [Operator.model_validate(d) async for d in cursor]

        return await self._bounded(_collect(), "find")

    async def count(self, filt: Dict[str, Any]) -> int:
        return await self._bounded(self.col.count_documents(filt), "count_documents")

    async def find_one(self, filt: Dict[str, Any]) -> Optional[Operator]:
        doc = await self._bounded(self.col.find_one(filt), "find_one")
        return Operator.model_validate(doc) if doc else None

    async def get(self, operator_id: str) -> Optional[Operator]:
        return await self.find_one({"_id": to_object_id(operator_id)})

    async def all(self) -> List[Operator]:
        """Unfiltered listing in id order."""
        return await self.find(OperatorQuery(sort=[("_id", ASCENDING)]))

    # ---------- writes ---------- #

    async def insert_one(self, fields: Dict[str, Any], *, user_id: str) -> Operator:
        doc = {**fields, "userId": user_id}
        res = await self._bounded(self.col.insert_one(doc), "insert_one")
        doc["_id"] = res.inserted_id
        return Operator.model_validate(doc)

    async def update_one(self, operator_id: str, fields: Dict[str, Any]) -> Optional[Operator]:
        # id and owner are immutable
        set_fields = {k: v for k, v in fields.items() if k not in IMMUTABLE_KEYS}
        doc = await self._bounded(
            self.col.find_one_and_update(
                {"_id": to_object_id(operator_id)},
                {"$set": set_fields},
                return_document=ReturnDocument.AFTER,
            ),
            "find_one_and_update",
        )
        return Operator.model_validate(doc) if doc else None

    async def delete_one(self, operator_id: str) -> bool:
        res = await self._bounded(self.col.delete_one({"_id": to_object_id(operator_id)}), "delete_one")
        return res.deleted_count == 1
