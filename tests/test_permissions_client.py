from __future__ import annotations

import httpx
import pytest

from operator_repo.clients import InMemoryPermissionsClient, PermissionsV2Client, build_permissions_client
from operator_repo.config import Settings
from operator_repo.errors import DependencyError
from operator_repo.models import (
    Capability,
    ListOptions,
    PermissionsMap,
    ResourcePermissions,
    Topic,
    default_topic_permissions,
)

BASE = "http://permv2.test"


@pytest.fixture
def client():
    return PermissionsV2Client(BASE, http_client=httpx.AsyncClient(base_url=BASE))


@pytest.mark.asyncio
async def test_check_permission_sends_capability_and_token(respx_mock, client):
    route = respx_mock.get(f"{BASE}/check/ops/abc").mock(return_value=httpx.Response(200, json=True))

    assert await client.check_permission("tok", "ops", "abc", Capability.WRITE) is True

    req = route.calls.last.request
    assert req.url.params["permissions"] == "w"
    assert req.headers["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_check_permission_false(respx_mock, client):
    respx_mock.get(f"{BASE}/check/ops/abc").mock(return_value=httpx.Response(200, json=False))
    assert await client.check_permission("Bearer tok", "ops", "abc", Capability.READ) is False


@pytest.mark.asyncio
async def test_accessible_ids_paging_params(respx_mock, client):
    route = respx_mock.get(f"{BASE}/accessible/ops").mock(return_value=httpx.Response(200, json=["a", "b"]))

    ids = await client.list_accessible_resource_ids("tok", "ops", ListOptions(limit=2, offset=4), Capability.READ)

    assert ids == ["a", "b"]
    params = route.calls.last.request.url.params
    assert params["permissions"] == "r"
    assert params["limit"] == "2"
    assert params["offset"] == "4"


@pytest.mark.asyncio
async def test_unbounded_listing_sends_no_paging(respx_mock, client):
    route = respx_mock.get(f"{BASE}/manage/ops").mock(
        return_value=httpx.Response(
            200,
            json=[
                {
                    "id": "abc",
                    "topic_id": "ops",
                    "user_permissions": {"u1": {"read": True, "write": True, "execute": True, "administrate": True}},
                    "group_permissions": {},
                    "role_permissions": {"admin": {"read": True, "write": True, "execute": True, "administrate": True}},
                }
            ],
        )
    )

    resources = await client.list_resources_with_admin_permission("admin", "ops", ListOptions())

    assert "limit" not in route.calls.last.request.url.params
    assert resources[0].id == "abc"
    assert resources[0].user_permissions["u1"] == PermissionsMap.full()


@pytest.mark.asyncio
async def test_set_permission_puts_full_document(respx_mock, client):
    route = respx_mock.put(f"{BASE}/manage/ops/abc").mock(return_value=httpx.Response(200))
    perms = default_topic_permissions().with_owner("u1")

    out = await client.set_permission("admin", "ops", "abc", perms)

    assert out == perms
    body = route.calls.last.request.content
    assert ResourcePermissions.model_validate_json(body) == perms


@pytest.mark.asyncio
async def test_set_topic_and_remove(respx_mock, client):
    topic_route = respx_mock.put(f"{BASE}/admin/topics/ops").mock(return_value=httpx.Response(200))
    delete_route = respx_mock.delete(f"{BASE}/admin/resources/ops/abc").mock(return_value=httpx.Response(200))

    topic = Topic(id="ops", default_permissions=default_topic_permissions())
    assert await client.set_topic("admin", topic) == topic
    await client.remove_resource("admin", "ops", "abc")

    assert topic_route.called and delete_route.called
    assert delete_route.calls.last.request.headers["Authorization"] == "Bearer admin"


@pytest.mark.asyncio
async def test_upstream_error_is_dependency_error(respx_mock, client):
    respx_mock.get(f"{BASE}/check/ops/abc").mock(return_value=httpx.Response(500, text="boom"))
    with pytest.raises(DependencyError) as ei:
        await client.check_permission("tok", "ops", "abc", Capability.READ)
    assert ei.value.service == "permissions-v2"
    assert "500" in str(ei.value)
    assert "boom" in str(ei.value)


@pytest.mark.asyncio
async def test_client_errors_are_dependency_errors_too(respx_mock, client):
    respx_mock.put(f"{BASE}/manage/ops/abc").mock(return_value=httpx.Response(403, text="admin token rejected"))
    with pytest.raises(DependencyError) as ei:
        await client.set_permission("admin", "ops", "abc", ResourcePermissions())
    assert "HTTP 403 PUT /manage/ops/abc: admin token rejected" in str(ei.value)


@pytest.mark.asyncio
async def test_transport_error_is_dependency_error(respx_mock, client):
    respx_mock.delete(f"{BASE}/admin/resources/ops/abc").mock(side_effect=httpx.ConnectError("refused"))
    with pytest.raises(DependencyError) as ei:
        await client.remove_resource("admin", "ops", "abc")
    assert isinstance(ei.value.__cause__, httpx.ConnectError)


def test_mock_url_selects_in_memory_client():
    assert isinstance(build_permissions_client(Settings(permissions_v2_url="mock")), InMemoryPermissionsClient)
    real = build_permissions_client(Settings(permissions_v2_url=BASE + "/"))
    assert isinstance(real, PermissionsV2Client)
    assert real.base_url == BASE
