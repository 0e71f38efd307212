# operator_repo/api/health_routes.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter(tags=["meta"])


@router.get("/health", summary="Liveness probe")
def health(request: Request) -> Dict[str, Any]:
    cfg = request.app.state.settings
    return {
        "status": "ok",
        "service": cfg.service_name,
        "at": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/version", summary="Service version")
def version(request: Request) -> Dict[str, Any]:
    cfg = request.app.state.settings
    return {
        "service": cfg.service_name,
        "version": cfg.service_version,
    }
