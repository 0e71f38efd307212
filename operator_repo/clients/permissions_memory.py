# operator_repo/clients/permissions_memory.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Set

from jose.exceptions import JWTError

from operator_repo.clients.permissions import PermissionsClient
from operator_repo.infra.tokens import claim_groups, claim_roles, read_claims
from operator_repo.models import Capability, ListOptions, Resource, ResourcePermissions, Topic

logger = logging.getLogger("operator_repo.clients.permissions_memory")


class _Subject:
    def __init__(self, user_id: str = "", groups: Iterable[str] = (), roles: Iterable[str] = ()) -> None:
        self.user_id = user_id
        self.groups: Set[str] = set(groups)
        self.roles: Set[str] = set(roles)


def _subject(token: str) -> _Subject:
    try:
        claims = read_claims(token)
    except JWTError:
        # unknown callers hold no grants
        return _Subject()
    return _Subject(str(claims.get("sub") or ""), claim_groups(claims), claim_roles(claims))


def _page(items: List, options: ListOptions) -> List:
    start = max(options.offset, 0)
    if options.limit > 0:
        return items[start : start + options.limit]
    return items[start:]


class InMemoryPermissionsClient(PermissionsClient):
    """
    Process-local stand-in for permissions-v2, used by tests and selected at
    runtime with PERMISSIONS_V2_URL=mock.

    Caller identity is read from the JWT claims of the token: `sub`, `groups`
    and `realm_access.roles`. Admin-token calls are not checked.
    """

    def __init__(self) -> None:
        self.topics: Dict[str, Topic] = {}
        self.resources: Dict[str, Dict[str, ResourcePermissions]] = {}

    def _topic_resources(self, topic_id: str) -> Dict[str, ResourcePermissions]:
        return self.resources.setdefault(topic_id, {})

    @staticmethod
    def _allows(perms: ResourcePermissions, who: _Subject, capability: Capability) -> bool:
        user = perms.user_permissions.get(who.user_id) if who.user_id else None
        if user is not None and user.allows(capability):
            return True
        for group in who.groups:
            grant = perms.group_permissions.get(group)
            if grant is not None and grant.allows(capability):
                return True
        for role in who.roles:
            grant = perms.role_permissions.get(role)
            if grant is not None and grant.allows(capability):
                return True
        return False

    async def set_topic(self, admin_token: str, topic: Topic) -> Topic:
        self.topics[topic.id] = topic.model_copy(deep=True)
        self._topic_resources(topic.id)
        return topic

    async def check_permission(
        self, token: str, topic_id: str, resource_id: str, capability: Capability
    ) -> bool:
        perms = self._topic_resources(topic_id).get(resource_id)
        if perms is None:
            return False
        return self._allows(perms, _subject(token), capability)

    async def list_accessible_resource_ids(
        self, token: str, topic_id: str, options: ListOptions, capability: Capability
    ) -> List[str]:
        who = _subject(token)
        ids = sorted(
            rid for rid, perms in self._topic_resources(topic_id).items()
            if self._allows(perms, who, capability)
        )
        return _page(ids, options)

    async def list_resources_with_admin_permission(
        self, admin_token: str, topic_id: str, options: ListOptions
    ) -> List[Resource]:
        items = [
            Resource(id=rid, topic_id=topic_id, **perms.model_dump())
            for rid, perms in sorted(self._topic_resources(topic_id).items())
        ]
        return _page(items, options)

    async def set_permission(
        self, admin_token: str, topic_id: str, resource_id: str, permissions: ResourcePermissions
    ) -> ResourcePermissions:
        stored = ResourcePermissions.model_validate(permissions.model_dump())
        self._topic_resources(topic_id)[resource_id] = stored
        return stored

    async def remove_resource(self, admin_token: str, topic_id: str, resource_id: str) -> None:
        self._topic_resources(topic_id).pop(resource_id, None)
        logger.debug("removed %s/%s", topic_id, resource_id)
