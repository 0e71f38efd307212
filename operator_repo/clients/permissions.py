# operator_repo/clients/permissions.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx

from operator_repo.clients.http_utils import get_http_client
from operator_repo.errors import DependencyError
from operator_repo.models import Capability, ListOptions, Resource, ResourcePermissions, Topic

logger = logging.getLogger("operator_repo.clients.permissions")

SERVICE_NAME = "permissions-v2"

T = TypeVar("T")


class PermissionsClient(ABC):
    """
    Contract the repository layer needs from the permissions service.
    Implementations raise DependencyError on any transport or upstream
    failure.
    """

    @abstractmethod
    async def set_topic(self, admin_token: str, topic: Topic) -> Topic: ...

    @abstractmethod
    async def check_permission(
        self, token: str, topic_id: str, resource_id: str, capability: Capability
    ) -> bool: ...

    @abstractmethod
    async def list_accessible_resource_ids(
        self, token: str, topic_id: str, options: ListOptions, capability: Capability
    ) -> List[str]: ...

    @abstractmethod
    async def list_resources_with_admin_permission(
        self, admin_token: str, topic_id: str, options: ListOptions
    ) -> List[Resource]: ...

    @abstractmethod
    async def set_permission(
        self, admin_token: str, topic_id: str, resource_id: str, permissions: ResourcePermissions
    ) -> ResourcePermissions: ...

    @abstractmethod
    async def remove_resource(self, admin_token: str, topic_id: str, resource_id: str) -> None: ...

    async def close(self) -> None:
        return None


def _auth_headers(token: Optional[str]) -> Dict[str, str]:
    raw = (token or "").strip()
    if not raw:
        return {}
    if not raw.lower().startswith("bearer "):
        raw = f"Bearer {raw}"
    return {"Authorization": raw}


class PermissionsV2Client(PermissionsClient):
    """
    Thin async client for the permissions-v2 REST API.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http_client

    async def _client(self) -> httpx.AsyncClient:
        if self._http is not None:
            return self._http
        return await get_http_client(self.base_url, timeout=self.timeout)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        token: Optional[str],
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> httpx.Response:
        """
        Single conversion point: transport errors and non-2xx answers both
        leave here as DependencyError.
        """
        client = await self._client()
        try:
            resp = await client.request(method, url, params=params, json=json, headers=_auth_headers(token))
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise DependencyError.wrap(SERVICE_NAME, e) from e
        if not resp.is_success:
            logger.error("%s %s -> HTTP %s", method, url, resp.status_code)
            raise DependencyError(SERVICE_NAME, f"HTTP {resp.status_code} {method} {url}: {resp.text[:500]}")
        return resp

    # --------- Topics --------- #

    async def set_topic(self, admin_token: str, topic: Topic) -> Topic:
        """
        PUT /admin/topics/{topic_id}
        """
        resp = await self._request(
            "PUT", f"/admin/topics/{topic.id}", token=admin_token, json=topic.model_dump(mode="json")
        )
        return Topic.model_validate(resp.json()) if resp.content else topic

    # --------- Checks --------- #

    async def check_permission(
        self, token: str, topic_id: str, resource_id: str, capability: Capability
    ) -> bool:
        """
        GET /check/{topic_id}/{resource_id}?permissions=<r|w|x|a>
        """
        resp = await self._request(
            "GET",
            f"/check/{topic_id}/{resource_id}",
            token=token,
            params={"permissions": capability.value},
        )
        return bool(resp.json())

    async def list_accessible_resource_ids(
        self, token: str, topic_id: str, options: ListOptions, capability: Capability
    ) -> List[str]:
        """
        GET /accessible/{topic_id}?permissions=<r|w|x|a>&limit&offset
        """
        params: Dict[str, Any] = {"permissions": capability.value, **options.as_params()}
        resp = await self._request("GET", f"/accessible/{topic_id}", token=token, params=params)
        return [str(i) for i in (resp.json() or [])]

    # --------- Management --------- #

    async def list_resources_with_admin_permission(
        self, admin_token: str, topic_id: str, options: ListOptions
    ) -> List[Resource]:
        """
        GET /manage/{topic_id}?limit&offset
        """
        resp = await self._request("GET", f"/manage/{topic_id}", token=admin_token, params=options.as_params())
        return [Resource.model_validate(r) for r in (resp.json() or [])]

    async def set_permission(
        self, admin_token: str, topic_id: str, resource_id: str, permissions: ResourcePermissions
    ) -> ResourcePermissions:
        """
        PUT /manage/{topic_id}/{resource_id} (create or replace)
        """
        resp = await self._request(
            "PUT",
            f"/manage/{topic_id}/{resource_id}",
            token=admin_token,
            json=permissions.model_dump(mode="json"),
        )
        return ResourcePermissions.model_validate(resp.json()) if resp.content else permissions

    async def remove_resource(self, admin_token: str, topic_id: str, resource_id: str) -> None:
        """
        DELETE /admin/resources/{topic_id}/{resource_id}
        """
        await self._request("DELETE", f"/admin/resources/{topic_id}/{resource_id}", token=admin_token)

    async def close(self) -> None:
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()


async def fetch_all(fetch: Callable[[ListOptions], Awaitable[List[T]]], page_size: int) -> List[T]:
    """
    Drain a limit/offset listing. A page shorter than `page_size` ends it;
    page_size <= 0 issues a single unbounded request.
    """
    if page_size <= 0:
        return list(await fetch(ListOptions()))
    items: List[T] = []
    offset = 0
    while True:
        page = await fetch(ListOptions(limit=page_size, offset=offset))
        items.extend(page)
        if len(page) < page_size:
            return items
        offset += len(page)
