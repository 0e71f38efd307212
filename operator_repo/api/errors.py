# operator_repo/api/errors.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import ORJSONResponse

from operator_repo.errors import (
    DependencyError,
    InvalidArgumentError,
    MissingIdentityError,
    NotFoundError,
    OperatorRepoError,
    UnauthorizedError,
)

logger = logging.getLogger("operator_repo.api.errors")

_STATUS = {
    MissingIdentityError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    InvalidArgumentError: status.HTTP_400_BAD_REQUEST,
    DependencyError: status.HTTP_502_BAD_GATEWAY,
}


def status_for(exc: OperatorRepoError) -> int:
    for kind, code in _STATUS.items():
        if isinstance(exc, kind):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _handle_repo_error(request: Request, exc: OperatorRepoError) -> ORJSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.info("%s %s -> %d: %s", request.method, request.url.path, code, exc)
    return ORJSONResponse(status_code=code, content={"error": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OperatorRepoError, _handle_repo_error)
