# operator_repo/clients/http_utils.py
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

import httpx

from operator_repo.config import settings

logger = logging.getLogger("operator_repo.clients.http")


# One shared AsyncClient per base_url (connection pooling + timeouts)
_clients: Dict[str, httpx.AsyncClient] = {}
_clients_lock = asyncio.Lock()


async def get_http_client(base_url: str, *, timeout: Optional[float] = None) -> httpx.AsyncClient:
    async with _clients_lock:
        client = _clients.get(base_url)
        if client is None or client.is_closed:
            client = httpx.AsyncClient(
                base_url=base_url,
                timeout=timeout if timeout is not None else settings.http_client_timeout_seconds,
                headers={
                    "Accept": "application/json",
                    "User-Agent": f"{settings.service_name}/{settings.service_version}",
                },
            )
            _clients[base_url] = client
            logger.info("HTTP client created for %s", base_url)
        return client


async def close_http_clients() -> None:
    async with _clients_lock:
        for base_url, client in list(_clients.items()):
            if not client.is_closed:
                await client.aclose()
                logger.info("HTTP client closed for %s", base_url)
        _clients.clear()

