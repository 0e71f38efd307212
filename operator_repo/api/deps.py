# operator_repo/api/deps.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import HTTPException, Query, Request, status
from jose.exceptions import JWTError

from operator_repo.infra.tokens import claim_roles, read_claims
from operator_repo.models import ADMIN_ROLE
from operator_repo.services.operator_service import OperatorService

logger = logging.getLogger("operator_repo.api.deps")

HEADER_USER_ID = "X-UserId"
HEADER_USER_ROLES = "X-User-Roles"
HEADER_AUTHORIZATION = "Authorization"


@dataclass
class CallerIdentity:
    user_id: str
    token: str = ""
    roles: List[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


def _header_roles(request: Request) -> List[str]:
    raw = request.headers.get(HEADER_USER_ROLES, "")
    return [r.strip() for r in raw.split(",") if r.strip()]


def get_identity(request: Request, for_user: Optional[str] = Query(default=None)) -> CallerIdentity:
    """
    Resolution order:
      1) `for_user` query param, honoured for callers with the admin role only
      2) X-UserId header
      3) `sub` claim of the bearer token
    """
    token = request.headers.get(HEADER_AUTHORIZATION, "")
    roles = _header_roles(request)

    claims = None
    if token:
        try:
            claims = read_claims(token)
        except JWTError:
            claims = None
    if not roles and claims is not None:
        roles = claim_roles(claims)

    if for_user and ADMIN_ROLE in roles:
        return CallerIdentity(user_id=for_user, token=token, roles=roles)

    user_id = request.headers.get(HEADER_USER_ID, "")
    if not user_id and claims is not None:
        user_id = str(claims.get("sub") or "")
    if not user_id:
        logger.error("could not get user id")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
    return CallerIdentity(user_id=user_id, token=token, roles=roles)


def get_operator_service(request: Request) -> OperatorService:
    return request.app.state.operator_service
