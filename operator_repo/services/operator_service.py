# operator_repo/services/operator_service.py
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from operator_repo.clients.permissions import PermissionsClient
from operator_repo.dal.operator_dal import OperatorDAL, to_object_id
from operator_repo.errors import (
    DependencyError,
    InvalidArgumentError,
    MissingIdentityError,
    NotFoundError,
    UnauthorizedError,
)
from operator_repo.models import (
    BatchDeleteReport,
    Capability,
    Operator,
    OperatorPayload,
    OperatorResponse,
    QueryArgs,
    Topic,
    default_topic_permissions,
)
from operator_repo.services.query_builder import OperatorQueryBuilder
from operator_repo.services.reconciler import PermissionReconciler, ReconcileReport

logger = logging.getLogger("operator_repo.services.operators")


class OperatorService:
    """
    Create/read/update/delete/list for operators, with every read and write
    checked against the permissions service.

    Creating an operator registers its permission entry before returning, so
    the owner can see it immediately; the startup reconcile repairs whatever
    a failed request left behind.
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
        self.queries = OperatorQueryBuilder(perm, topic_id=topic_id, page_size=page_size)
        self.reconciler = PermissionReconciler(
            dal, perm, topic_id=topic_id, admin_token=admin_token, page_size=page_size
        )

    # ─────────────────────────────────────────────────────────────
    # Startup / maintenance
    # ─────────────────────────────────────────────────────────────
    async def ensure_topic(self) -> Topic:
        topic = Topic(id=self.topic_id, default_permissions=default_topic_permissions())
        return await self.perm.set_topic(self.admin_token, topic)

    async def reconcile(self) -> ReconcileReport:
        return await self.reconciler.reconcile()

    # ─────────────────────────────────────────────────────────────
    # Guards
    # ─────────────────────────────────────────────────────────────
    @staticmethod
    def _require_identity(caller_id: Optional[str]) -> str:
        if not caller_id:
            raise MissingIdentityError()
        return caller_id

    async def _require(self, operator_id: str, auth_token: str, capability: Capability) -> None:
        to_object_id(operator_id)
        allowed = await self.perm.check_permission(auth_token, self.topic_id, operator_id, capability)
        if not allowed:
            raise UnauthorizedError(
                f"missing {capability.name.lower()} rights on operator '{operator_id}'",
                operator_id=operator_id,
            )

    # ─────────────────────────────────────────────────────────────
    # CRUD
    # ─────────────────────────────────────────────────────────────
    async def create(self, payload: OperatorPayload, caller_id: str) -> Operator:
        owner = self._require_identity(caller_id)
        operator = await self.dal.insert_one(payload.mutable_fields(), user_id=owner)
        permissions = default_topic_permissions().with_owner(owner)
        try:
            await self.perm.set_permission(self.admin_token, self.topic_id, operator.id, permissions)
        except DependencyError:
            logger.error("permission setup failed for new operator %s; removing it", operator.id)
            try:
                await self.dal.delete_one(operator.id)
            except DependencyError:
                logger.exception("rollback of operator %s failed; reconcile will register it", operator.id)
            raise
        logger.info("operator %s created by %s", operator.id, owner)
        return operator

    async def get(self, operator_id: str, caller_id: str, auth_token: str) -> Operator:
        self._require_identity(caller_id)
        await self._require(operator_id, auth_token, Capability.READ)
        operator = await self.dal.get(operator_id)
        if operator is None:
            raise NotFoundError(operator_id)
        return operator

    async def update(
        self, operator_id: str, payload: OperatorPayload, caller_id: str, auth_token: str
    ) -> Operator:
        self._require_identity(caller_id)
        await self._require(operator_id, auth_token, Capability.WRITE)
        operator = await self.dal.update_one(operator_id, payload.mutable_fields())
        if operator is None:
            raise NotFoundError(operator_id)
        logger.info("operator %s updated by %s", operator_id, caller_id)
        return operator

    async def delete(self, operator_id: str, caller_id: str, auth_token: str) -> None:
        self._require_identity(caller_id)
        await self._require(operator_id, auth_token, Capability.WRITE)
        if not await self.dal.delete_one(operator_id):
            raise NotFoundError(operator_id)
        logger.info("operator %s deleted by %s", operator_id, caller_id)
        try:
            await self.perm.remove_resource(self.admin_token, self.topic_id, operator_id)
        except DependencyError as e:
            # the record is gone; the entry left behind is an orphan for the next reconcile
            logger.warning("permission entry of deleted operator %s not removed: %s", operator_id, e)

    async def delete_many(self, operator_ids: Iterable[str], caller_id: str, auth_token: str) -> BatchDeleteReport:
        """
        Best effort: every id is attempted, in order. The report keeps
        authorization failures apart from store/dependency failures.
        """
        self._require_identity(caller_id)
        report = BatchDeleteReport()
        for operator_id in dict.fromkeys(operator_ids):
            try:
                await self.delete(operator_id, caller_id, auth_token)
            except InvalidArgumentError:
                report.invalid.append(operator_id)
            except UnauthorizedError:
                report.unauthorized.append(operator_id)
            except NotFoundError:
                report.not_found.append(operator_id)
            except DependencyError as e:
                report.failed[operator_id] = str(e)
            else:
                report.deleted.append(operator_id)
        if not report.complete:
            logger.warning("batch delete by %s left unprocessed: %s", caller_id, report.unprocessed())
        return report

    async def list(
        self,
        caller_id: str,
        args: Optional[QueryArgs],
        auth_token: str,
        *,
        is_admin: bool = False,
    ) -> OperatorResponse:
        if not is_admin:
            self._require_identity(caller_id)
        query = await self.queries.build(caller_id, is_admin, args, auth_token)
        found, counted = await asyncio.gather(
            self.dal.find(query), self.dal.count(query.filter), return_exceptions=True
        )
        for result in (found, counted):
            if isinstance(result, BaseException):
                raise result
        operators, total = found, counted
        return OperatorResponse(operators=operators, total=total)
