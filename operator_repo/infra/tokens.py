# operator_repo/infra/tokens.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from jose import jwt
from jose.exceptions import JWTError


def strip_bearer(token: Optional[str]) -> str:
    raw = (token or "").strip()
    if raw.lower().startswith("bearer "):
        return raw.split(" ", 1)[1].strip()
    return raw


def read_claims(token: Optional[str]) -> Dict[str, Any]:
    """
    Claims of a bearer JWT, read without signature verification. The API
    gateway in front of the service is responsible for verifying tokens.
    Raises JWTError on anything that is not a JWT.
    """
    raw = strip_bearer(token)
    if not raw:
        raise JWTError("empty token")
    return jwt.get_unverified_claims(raw)


def claim_roles(claims: Dict[str, Any]) -> List[str]:
    realm = claims.get("realm_access") or {}
    roles = realm.get("roles") if isinstance(realm, dict) else None
    if roles is None:
        roles = claims.get("roles") or []
    return [str(r) for r in roles]


def claim_groups(claims: Dict[str, Any]) -> List[str]:
    return [str(g) for g in (claims.get("groups") or [])]
