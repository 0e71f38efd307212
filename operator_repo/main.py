# operator_repo/main.py
from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from operator_repo.api import health_router, operator_router, register_exception_handlers
from operator_repo.clients import build_permissions_client
from operator_repo.clients.http_utils import close_http_clients
from operator_repo.config import Settings, settings
from operator_repo.dal.operator_dal import OperatorDAL
from operator_repo.db.mongodb import close_client as close_mongo_client
from operator_repo.db.mongodb import get_operator_collection, init_indexes
from operator_repo.infra.logging import setup_logging
from operator_repo.services import OperatorService, settle_permissions

logger = logging.getLogger("operator_repo.main")

HEADER_REQUEST_ID = "X-Request-ID"


def build_operator_service(cfg: Settings) -> OperatorService:
    dal = OperatorDAL(get_operator_collection(), timeout=cfg.request_timeout_seconds)
    perm = build_permissions_client(cfg)
    return OperatorService(
        dal,
        perm,
        topic_id=cfg.permissions_topic,
        admin_token=cfg.permissions_admin_token,
        page_size=cfg.permissions_page_size,
    )


def create_app(cfg: Settings = settings, *, service: Optional[OperatorService] = None) -> FastAPI:
    """
    App factory. Passing `service` skips all infrastructure wiring in the
    lifespan (Mongo, permissions client, startup reconcile).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """
        App lifespan:
          - configure logging
          - Mongo client + indexes
          - permissions client, topic registration, reconcile
          - graceful shutdown: permissions client, HTTP clients, Mongo client
        """
        if service is not None:
            yield
            return

        setup_logging(cfg.service_name, cfg.log_level)
        logger.info("%s %s starting up", cfg.service_name, cfg.service_version)

        # 1) Mongo
        await init_indexes()
        logger.info("Mongo indexes ensured (db=%s, collection=%s)", cfg.mongo_db, cfg.mongo_collection)

        # 2) Permissions + reconcile, before traffic
        svc = build_operator_service(cfg)
        app.state.operator_service = svc
        if cfg.reconcile_on_start:
            try:
                await settle_permissions(svc, attempts=cfg.reconcile_attempts)
            except Exception:
                logger.exception("startup permission reconcile failed")
                await close_mongo_client()
                raise
        else:
            await svc.ensure_topic()

        try:
            yield
        finally:
            try:
                await svc.perm.close()
                await close_http_clients()
                logger.info("HTTP clients closed")
            except Exception:
                logger.warning("Error closing HTTP clients", exc_info=True)

            try:
                await close_mongo_client()
                logger.info("Mongo client closed")
            except Exception:
                logger.warning("Error closing Mongo client", exc_info=True)

            logger.info("%s shutdown complete", cfg.service_name)

    app = FastAPI(
        title="Analytics Operator Repository",
        description="For the administration of analytics operators.",
        version=cfg.service_version,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    if service is not None:
        app.state.operator_service = service

    origins = [o.strip() for o in cfg.cors_allow_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PUT"],
        allow_headers=["Origin", "Content-Type", "Authorization"],
        expose_headers=["Content-Length"],
        allow_credentials=True,
    )

    @app.middleware("http")
    async def request_id(request: Request, call_next):
        rid = request.headers.get(HEADER_REQUEST_ID) or uuid.uuid4().hex
        response = await call_next(request)
        response.headers[HEADER_REQUEST_ID] = rid
        return response

    register_exception_handlers(app)
    app.include_router(health_router, prefix=cfg.url_prefix)
    app.include_router(operator_router, prefix=cfg.url_prefix)
    return app


app = create_app()
