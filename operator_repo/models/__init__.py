from .operator_models import (
    MUTABLE_FIELDS,
    Value,
    OperatorPayload,
    Operator,
    OperatorResponse,
    BatchDeleteReport,
)

from .permission_models import (
    ADMIN_ROLE,
    Capability,
    PermissionsMap,
    ResourcePermissions,
    Resource,
    Topic,
    ListOptions,
    default_topic_permissions,
)

from .query_models import (
    QueryArgs,
    OperatorQuery,
    parse_order,
)

__all__ = [
    # operator_models
    "MUTABLE_FIELDS",
    "Value",
    "OperatorPayload",
    "Operator",
    "OperatorResponse",
    "BatchDeleteReport",
    # permission_models
    "ADMIN_ROLE",
    "Capability",
    "PermissionsMap",
    "ResourcePermissions",
    "Resource",
    "Topic",
    "ListOptions",
    "default_topic_permissions",
    # query_models
    "QueryArgs",
    "OperatorQuery",
    "parse_order",
]
