from __future__ import annotations

import logging

from operator_repo.config import Settings

from .permissions import PermissionsClient, PermissionsV2Client, fetch_all
from .permissions_memory import InMemoryPermissionsClient

logger = logging.getLogger("operator_repo.clients")


def build_permissions_client(cfg: Settings) -> PermissionsClient:
    if cfg.use_mock_permissions:
        logger.warning("using in-memory permissions (PERMISSIONS_V2_URL=mock)")
        return InMemoryPermissionsClient()
    return PermissionsV2Client(cfg.permissions_v2_url, timeout=cfg.request_timeout_seconds)


__all__ = [
    "PermissionsClient",
    "PermissionsV2Client",
    "InMemoryPermissionsClient",
    "build_permissions_client",
    "fetch_all",
]
