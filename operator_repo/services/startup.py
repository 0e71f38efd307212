# operator_repo/services/startup.py
from __future__ import annotations

import logging

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from operator_repo.errors import DependencyError
from operator_repo.services.operator_service import OperatorService
from operator_repo.services.reconciler import ReconcileReport

logger = logging.getLogger("operator_repo.services.startup")


async def settle_permissions(
    svc: OperatorService,
    *,
    attempts: int = 3,
    initial_wait: float = 0.5,
    max_wait: float = 5.0,
) -> ReconcileReport:
    """
    Register the operator topic and reconcile before traffic is accepted.
    Dependency failures retry the whole pass; the last one is re-raised.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_exponential_jitter(initial=initial_wait, max=max_wait, jitter=initial_wait),
        retry=retry_if_exception_type(DependencyError),
        reraise=True,
    ):
        with attempt:
            n = attempt.retry_state.attempt_number
            if n > 1:
                logger.warning("permission reconcile attempt %d/%d", n, attempts)
            await svc.ensure_topic()
            return await svc.reconcile()
    raise RuntimeError("unreachable")  # pragma: no cover
