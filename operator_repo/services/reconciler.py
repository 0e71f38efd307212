# operator_repo/services/reconciler.py
from __future__ import annotations

import logging
from typing import Dict, List

from pydantic import BaseModel, Field

from operator_repo.clients.permissions import PermissionsClient, fetch_all
from operator_repo.dal.operator_dal import OperatorDAL
from operator_repo.models import Resource, ResourcePermissions

logger = logging.getLogger("operator_repo.services.reconciler")


class ReconcileReport(BaseModel):
    synced: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)


class PermissionReconciler:
    """
    Brings the permissions service in line with the operator collection:

      1) every stored operator gets a permission entry whose owner holds
         read/write/execute/administrate; all other grants are kept
      2) entries for ids that are no longer stored are removed

    Both listings are read once up front. The first failing call aborts the
    pass; every step is idempotent, so running it again converges.
    Operator documents are never created or deleted here.
    """

    def __init__(
        self,
        dal: OperatorDAL,
        perm: PermissionsClient,
        *,
        topic_id: str,
        admin_token: str = "",
        page_size: int = 0,
    ) -> None:
        self.dal = dal
        self.perm = perm
        self.topic_id = topic_id
        self.admin_token = admin_token
        self.page_size = page_size

    async def _permission_resources(self) -> Dict[str, Resource]:
        async def _page(options):
            return await self.perm.list_resources_with_admin_permission(self.admin_token, self.topic_id, options)

        resources = await fetch_all(_page, self.page_size)
        return {r.id: r for r in resources}

    async def reconcile(self) -> ReconcileReport:
        logger.debug("validate operator permissions")
        operators = await self.dal.all()
        existing = await self._permission_resources()

        report = ReconcileReport()
        stored_ids = set()
        for operator in operators:
            stored_ids.add(operator.id)
            resource = existing.get(operator.id)
            base = resource.permissions() if resource is not None else ResourcePermissions()
            if not operator.user_id:
                logger.warning("operator %s has no owner; pushing its grants unchanged", operator.id)
            permissions = base.with_owner(operator.user_id)
            await self.perm.set_permission(self.admin_token, self.topic_id, operator.id, permissions)
            report.synced.append(operator.id)

        for orphan_id in sorted(set(existing) - stored_ids):
            await self.perm.remove_resource(self.admin_token, self.topic_id, orphan_id)
            report.removed.append(orphan_id)
            logger.debug("%s exists only in the permissions service, now deleted", orphan_id)

        logger.info(
            "permission reconcile done: synced=%d removed=%d",
            len(report.synced), len(report.removed),
        )
        return report
