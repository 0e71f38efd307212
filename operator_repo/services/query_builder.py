# operator_repo/services/query_builder.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING

from operator_repo.clients.permissions import PermissionsClient, fetch_all
from operator_repo.dal.operator_dal import to_object_id
from operator_repo.models import Capability, OperatorQuery, QueryArgs

logger = logging.getLogger("operator_repo.services.query")

ID_FIELD = "_id"
OWNER_FIELD = "userId"
SEARCH_FIELD = "name"


def identity_filter(caller_id: str, accessible_ids: List[ObjectId]) -> Dict[str, Any]:
    """Records the caller was granted read on, or owns."""
    return {
        "$or": [
            {ID_FIELD: {"$in": accessible_ids}},
            {OWNER_FIELD: caller_id},
        ]
    }


def search_filter(search: str) -> Dict[str, Any]:
    # literal substring, case-insensitive
    return {SEARCH_FIELD: {"$regex": re.escape(search), "$options": "i"}}


def build_filter(
    *,
    is_admin: bool,
    caller_id: str,
    accessible_ids: Optional[List[ObjectId]],
    search: Optional[str],
) -> Dict[str, Any]:
    clauses: List[Dict[str, Any]] = []
    if not is_admin:
        clauses.append(identity_filter(caller_id, accessible_ids or []))
    if search:
        clauses.append(search_filter(search))
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def build_sort(args: QueryArgs) -> List[tuple]:
    """
    Explicit order first, `_id` ascending always last so that pages are
    stable across calls.
    """
    sort: List[tuple] = []
    if args.sort_field and args.sort_field != ID_FIELD:
        sort.append((args.sort_field, DESCENDING if args.sort_desc else ASCENDING))
    if args.sort_field == ID_FIELD and args.sort_desc:
        sort.append((ID_FIELD, DESCENDING))
    else:
        sort.append((ID_FIELD, ASCENDING))
    return sort


class OperatorQueryBuilder:
    """
    Turns (caller, admin flag, listing args) into a store query scoped to
    what the caller may read.
    """

    def __init__(self, perm: PermissionsClient, *, topic_id: str, page_size: int = 0) -> None:
        self.perm = perm
        self.topic_id = topic_id
        self.page_size = page_size

    async def accessible_ids(self, auth_token: str) -> List[ObjectId]:
        async def _page(options):
            return await self.perm.list_accessible_resource_ids(
                auth_token, self.topic_id, options, Capability.READ
            )

        raw = await fetch_all(_page, self.page_size)
        # stable $in list regardless of the order the service answers in
        return [to_object_id(i) for i in sorted(set(raw))]

    async def build(
        self,
        caller_id: str,
        is_admin: bool,
        args: Optional[QueryArgs],
        auth_token: str = "",
    ) -> OperatorQuery:
        args = args or QueryArgs()
        ids: Optional[List[ObjectId]] = None
        if not is_admin:
            ids = await self.accessible_ids(auth_token)
            logger.debug("caller %s has read access to %d operators", caller_id, len(ids))
        return OperatorQuery(
            filter=build_filter(is_admin=is_admin, caller_id=caller_id, accessible_ids=ids, search=args.search),
            sort=build_sort(args),
            limit=args.limit or 0,
            skip=args.offset,
        )
