# operator_repo/models/permission_models.py
from __future__ import annotations

from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field


class Capability(str, Enum):
    READ = "r"
    WRITE = "w"
    EXECUTE = "x"
    ADMINISTRATE = "a"


class PermissionsMap(BaseModel):
    read: bool = False
    write: bool = False
    execute: bool = False
    administrate: bool = False

    @classmethod
    def full(cls) -> "PermissionsMap":
        return cls(read=True, write=True, execute=True, administrate=True)

    def allows(self, capability: Capability) -> bool:
        return {
            Capability.READ: self.read,
            Capability.WRITE: self.write,
            Capability.EXECUTE: self.execute,
            Capability.ADMINISTRATE: self.administrate,
        }[capability]


class ResourcePermissions(BaseModel):
    """
    Grants on one resource, per user id, group name and role name.
    """
    user_permissions: Dict[str, PermissionsMap] = Field(default_factory=dict)
    group_permissions: Dict[str, PermissionsMap] = Field(default_factory=dict)
    role_permissions: Dict[str, PermissionsMap] = Field(default_factory=dict)

    def with_owner(self, owner_id: str) -> "ResourcePermissions":
        """
        Copy of these grants with the owner's full grant re-asserted. Every
        other user, group and role grant is kept as is.
        """
        copy = self.model_copy(deep=True)
        if owner_id:
            copy.user_permissions[owner_id] = PermissionsMap.full()
        return copy


class Resource(ResourcePermissions):
    id: str
    topic_id: str = ""

    def permissions(self) -> ResourcePermissions:
        return ResourcePermissions(
            user_permissions=dict(self.user_permissions),
            group_permissions=dict(self.group_permissions),
            role_permissions=dict(self.role_permissions),
        )


class Topic(BaseModel):
    id: str
    publish_to_kafka_topic: str = ""
    default_permissions: ResourcePermissions = Field(default_factory=ResourcePermissions)


class ListOptions(BaseModel):
    limit: int = 0
    offset: int = 0

    def as_params(self) -> Dict[str, int]:
        params: Dict[str, int] = {}
        if self.limit > 0:
            params["limit"] = self.limit
        if self.offset > 0:
            params["offset"] = self.offset
        return params


ADMIN_ROLE = "admin"


def default_topic_permissions() -> ResourcePermissions:
    return ResourcePermissions(role_permissions={ADMIN_ROLE: PermissionsMap.full()})