# operator_repo/models/query_models.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

logger = logging.getLogger("operator_repo.models.query")

_SORT_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")

# largest value BSON can carry as a cursor limit or skip
MAX_INT64 = 2**63 - 1


def _first(value: Any) -> Optional[str]:
    # query strings arrive as str or as a list of str (multi-valued keys)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    return str(value)


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


class QueryArgs(BaseModel):
    """
    Typed listing arguments. Built once at the boundary from the raw query
    mapping; malformed entries are dropped rather than failing the request.
    """
    limit: Optional[int] = Field(default=None, gt=0, le=MAX_INT64)
    offset: int = Field(default=0, ge=0, le=MAX_INT64)
    sort_field: Optional[str] = None
    sort_desc: bool = False
    search: Optional[str] = None

    @classmethod
    def from_mapping(cls, args: Optional[Mapping[str, Any]]) -> "QueryArgs":
        if not args:
            return cls()

        values: Dict[str, Any] = {}

        limit = _parse_int(_first(args.get("limit")))
        if limit is not None and 0 < limit <= MAX_INT64:
            values["limit"] = limit
        elif "limit" in args:
            logger.debug("ignoring malformed limit=%r", args.get("limit"))

        offset = _parse_int(_first(args.get("offset")))
        if offset is not None and 0 <= offset <= MAX_INT64:
            values["offset"] = offset
        elif "offset" in args:
            logger.debug("ignoring malformed offset=%r", args.get("offset"))

        order = _first(args.get("order"))
        if order is not None:
            parsed = parse_order(order)
            if parsed is None:
                logger.debug("ignoring malformed order=%r", order)
            else:
                values["sort_field"], values["sort_desc"] = parsed

        search = _first(args.get("search"))
        if search:
            values["search"] = search

        return cls(**values)


def parse_order(order: str) -> Optional[Tuple[str, bool]]:
    """`field:asc` / `field:desc` -> (field, descending)."""
    parts = order.strip().split(":")
    if len(parts) != 2:
        return None
    field, direction = parts[0].strip(), parts[1].strip().lower()
    if not _SORT_FIELD_RE.match(field) or direction not in {"asc", "desc"}:
        return None
    return field, direction == "desc"


class OperatorQuery(BaseModel):
    """Store-level find arguments: filter, sort, limit and skip."""
    filter: Dict[str, Any] = Field(default_factory=dict)
    sort: List[Tuple[str, int]] = Field(default_factory=list)
    limit: int = 0  # 0 = unbounded
    skip: int = 0
