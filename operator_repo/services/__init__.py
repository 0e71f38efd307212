from .query_builder import OperatorQueryBuilder
from .reconciler import PermissionReconciler, ReconcileReport
from .operator_service import OperatorService
from .startup import settle_permissions

__all__ = [
    "OperatorQueryBuilder",
    "PermissionReconciler",
    "ReconcileReport",
    "OperatorService",
    "settle_permissions",
]
