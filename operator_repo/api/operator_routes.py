# operator_repo/api/operator_routes.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from fastapi.responses import ORJSONResponse

from operator_repo.api.deps import CallerIdentity, get_identity, get_operator_service
from operator_repo.models import BatchDeleteReport, Operator, OperatorPayload, OperatorResponse, QueryArgs
from operator_repo.services.operator_service import OperatorService
from operator_repo.services.reconciler import ReconcileReport

logger = logging.getLogger("operator_repo.api.operators")

router = APIRouter(prefix="/operator", tags=["operator"])


def _raw_query_args(request: Request) -> Dict[str, List[str]]:
    params = request.query_params
    return {key: params.getlist(key) for key in params.keys()}


@router.get("", response_model=OperatorResponse)
async def list_operators(
    request: Request,
    caller: CallerIdentity = Depends(get_identity),
    svc: OperatorService = Depends(get_operator_service),
):
    args = QueryArgs.from_mapping(_raw_query_args(request))
    return await svc.list(caller.user_id, args, caller.token)


@router.get("/{operator_id}", response_model=Operator)
async def get_operator(
    operator_id: str,
    caller: CallerIdentity = Depends(get_identity),
    svc: OperatorService = Depends(get_operator_service),
):
    return await svc.get(operator_id, caller.user_id, caller.token)


@router.put("/", response_model=Operator, status_code=status.HTTP_201_CREATED)
@router.put("", response_model=Operator, status_code=status.HTTP_201_CREATED, include_in_schema=False)
async def create_operator(
    payload: OperatorPayload,
    caller: CallerIdentity = Depends(get_identity),
    svc: OperatorService = Depends(get_operator_service),
):
    return await svc.create(payload, caller.user_id)


@router.post("/{operator_id}", response_model=Operator)
@router.post("/{operator_id}/", response_model=Operator, include_in_schema=False)
async def update_operator(
    operator_id: str,
    payload: OperatorPayload,
    caller: CallerIdentity = Depends(get_identity),
    svc: OperatorService = Depends(get_operator_service),
):
    return await svc.update(operator_id, payload, caller.user_id, caller.token)


@router.delete("/{operator_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_operator(
    operator_id: str,
    caller: CallerIdentity = Depends(get_identity),
    svc: OperatorService = Depends(get_operator_service),
) -> Response:
    await svc.delete(operator_id, caller.user_id, caller.token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", response_model=BatchDeleteReport)
async def delete_operators(
    ids: List[str] = Body(..., min_length=1),
    caller: CallerIdentity = Depends(get_identity),
    svc: OperatorService = Depends(get_operator_service),
):
    """
    Best-effort batch delete. 200 when every id was deleted, otherwise 207
    with the ids grouped by why they were not.
    """
    report = await svc.delete_many(ids, caller.user_id, caller.token)
    code = status.HTTP_200_OK if report.complete else status.HTTP_207_MULTI_STATUS
    return ORJSONResponse(status_code=code, content=report.model_dump(mode="json"))


@router.post("/admin/reconcile", response_model=ReconcileReport)
async def reconcile_permissions(
    caller: CallerIdentity = Depends(get_identity),
    svc: OperatorService = Depends(get_operator_service),
) -> Dict[str, Any]:
    if not caller.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin role required")
    logger.info("reconcile requested by %s", caller.user_id)
    report = await svc.reconcile()
    return report.model_dump()
