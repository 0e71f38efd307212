from __future__ import annotations

import pytest

from operator_repo.clients.permissions_memory import InMemoryPermissionsClient
from operator_repo.errors import DependencyError
from operator_repo.services import OperatorService, settle_permissions

from .conftest import TOPIC


class _FlakyTopic(InMemoryPermissionsClient):
    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.calls = 0

    async def set_topic(self, admin_token, topic):
        self.calls += 1
        if self.calls <= self.failures:
            raise DependencyError("permissions-v2", "connection refused")
        return await super().set_topic(admin_token, topic)


@pytest.mark.asyncio
async def test_settle_retries_until_dependency_recovers(dal, collection):
    oid = collection.seed(name="a", user_id="u1")
    perm = _FlakyTopic(failures=2)
    svc = OperatorService(dal, perm, topic_id=TOPIC)

    report = await settle_permissions(svc, attempts=3, initial_wait=0, max_wait=0)

    assert perm.calls == 3
    assert report.synced == [oid]
    assert TOPIC in perm.topics


@pytest.mark.asyncio
async def test_settle_reraises_after_last_attempt(dal):
    perm = _FlakyTopic(failures=5)
    svc = OperatorService(dal, perm, topic_id=TOPIC)

    with pytest.raises(DependencyError):
        await settle_permissions(svc, attempts=2, initial_wait=0, max_wait=0)
    assert perm.calls == 2


class _Broken(InMemoryPermissionsClient):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    async def set_topic(self, admin_token, topic):
        self.calls += 1
        raise RuntimeError("bug")


@pytest.mark.asyncio
async def test_non_dependency_errors_are_not_retried(dal):
    perm = _Broken()
    svc = OperatorService(dal, perm, topic_id=TOPIC)
    with pytest.raises(RuntimeError):
        await settle_permissions(svc, attempts=3, initial_wait=0, max_wait=0)
    assert perm.calls == 1
