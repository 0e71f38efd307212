"""
Shared fixtures and fakes for the operator repository tests.

This module provides:
- FakeCollection: an in-memory stand-in for a Motor collection that
  understands the filter operators the query builder emits
- bearer tokens for test callers
- a wired OperatorService on top of the fakes
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import pytest
from bson import ObjectId
from jose import jwt

from operator_repo.clients.permissions_memory import InMemoryPermissionsClient
from operator_repo.dal.operator_dal import OperatorDAL
from operator_repo.services.operator_service import OperatorService

TOPIC = "analytics-operators"
_MISSING = object()


# =============================================================================
# Fake Motor collection
# =============================================================================


def _lookup(doc: Dict[str, Any], key: str) -> Any:
    cur: Any = doc
    for part in key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return _MISSING
        cur = cur[part]
    return cur


def _match_value(value: Any, cond: Any) -> bool:
    if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
        for op, arg in cond.items():
            if op == "$in":
                if value is _MISSING or value not in arg:
                    return False
            elif op == "$regex":
                flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
                if not isinstance(value, str) or re.search(arg, value, flags) is None:
                    return False
            elif op == "$options":
                continue
            else:
                raise NotImplementedError(op)
        return True
    return value is not _MISSING and value == cond


def matches(doc: Dict[str, Any], filt: Dict[str, Any]) -> bool:
    for key, cond in filt.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in cond):
                return False
        elif key == "$and":
            if not all(matches(doc, sub) for sub in cond):
                return False
        elif not _match_value(_lookup(doc, key), cond):
            return False
    return True


def _sort_key(doc: Dict[str, Any], key: str) -> tuple:
    value = _lookup(doc, key)
    if value is _MISSING or value is None:
        return (0, 0)
    return (1, value)


@dataclass
class _InsertResult:
    inserted_id: ObjectId


@dataclass
class _DeleteResult:
    deleted_count: int


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]) -> None:
        self._docs = docs
        self._sort: Sequence = ()
        self._skip = 0
        self._limit = 0

    def sort(self, keys: Sequence) -> "FakeCursor":
        self._sort = list(keys)
        return self

    def skip(self, n: int) -> "FakeCursor":
        self._skip = n
        return self

    def limit(self, n: int) -> "FakeCursor":
        self._limit = n
        return self

    def _result(self) -> List[Dict[str, Any]]:
        docs = list(self._docs)
        # stable sorts, least significant key first
        for key, direction in reversed(list(self._sort)):
            docs.sort(key=lambda d, k=key: _sort_key(d, k), reverse=direction < 0)
        docs = docs[self._skip :]
        if self._limit > 0:
            docs = docs[: self._limit]
        return docs

    def __aiter__(self):
        async def _gen():
            for d in self._result():
                yield copy.deepcopy(d)

        return _gen()


class FakeCollection:
    def __init__(self) -> None:
        self.docs: Dict[ObjectId, Dict[str, Any]] = {}

    def _matching(self, filt: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [d for d in self.docs.values() if matches(d, filt)]

    def find(self, filt: Optional[Dict[str, Any]] = None) -> FakeCursor:
        return FakeCursor(self._matching(filt or {}))

    async def count_documents(self, filt: Dict[str, Any]) -> int:
        return len(self._matching(filt))

    async def find_one(self, filt: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        found = self._matching(filt)
        return copy.deepcopy(found[0]) if found else None

    async def insert_one(self, doc: Dict[str, Any]) -> _InsertResult:
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", ObjectId())
        self.docs[stored["_id"]] = stored
        return _InsertResult(inserted_id=stored["_id"])

    async def find_one_and_update(self, filt, update, return_document=None) -> Optional[Dict[str, Any]]:
        found = self._matching(filt)
        if not found:
            return None
        found[0].update(copy.deepcopy(update.get("$set", {})))
        return copy.deepcopy(found[0])

    async def delete_one(self, filt: Dict[str, Any]) -> _DeleteResult:
        found = self._matching(filt)
        if not found:
            return _DeleteResult(deleted_count=0)
        del self.docs[found[0]["_id"]]
        return _DeleteResult(deleted_count=1)

    async def create_index(self, *args, **kwargs) -> str:
        return "ix"

    # ---------- helpers for arranging state ---------- #

    def seed(self, *, name: str, user_id: str, **fields: Any) -> str:
        oid = ObjectId()
        self.docs[oid] = {"_id": oid, "name": name, "userId": user_id, **fields}
        return str(oid)


# =============================================================================
# Tokens
# =============================================================================


def make_token(user_id: str, roles: Optional[List[str]] = None, groups: Optional[List[str]] = None) -> str:
    claims: Dict[str, Any] = {"sub": user_id, "realm_access": {"roles": roles or ["user"]}}
    if groups:
        claims["groups"] = groups
    return "Bearer " + jwt.encode(claims, "test-secret", algorithm="HS256")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def dal(collection: FakeCollection) -> OperatorDAL:
    return OperatorDAL(collection, timeout=5.0)  # type: ignore[arg-type]


@pytest.fixture
def perm() -> InMemoryPermissionsClient:
    return InMemoryPermissionsClient()


@pytest.fixture
def service(dal: OperatorDAL, perm: InMemoryPermissionsClient) -> OperatorService:
    return OperatorService(dal, perm, topic_id=TOPIC, admin_token="admin")
