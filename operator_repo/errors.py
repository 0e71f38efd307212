# operator_repo/errors.py
from __future__ import annotations

from typing import Optional


class OperatorRepoError(Exception):
    """Base class for every error the repository layer raises."""


class NotFoundError(OperatorRepoError):
    def __init__(self, operator_id: str) -> None:
        super().__init__(f"operator '{operator_id}' not found")
        self.operator_id = operator_id


class UnauthorizedError(OperatorRepoError):
    """
    Raised when the caller has no identity, or lacks the capability the
    operation needs on the target record.
    """

    def __init__(self, message: str = "missing rights", *, operator_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.operator_id = operator_id


class InvalidArgumentError(OperatorRepoError):
    """An identifier or payload that cannot be parsed."""


class DependencyError(OperatorRepoError):
    """
    The record store or the permissions service failed. The upstream
    exception is chained as __cause__.
    """

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service

    @classmethod
    def wrap(cls, service: str, exc: BaseException) -> "DependencyError":
        err = cls(service, str(exc) or exc.__class__.__name__)
        err.__cause__ = exc
        return err


class MissingIdentityError(UnauthorizedError):
    def __init__(self) -> None:
        super().__init__("missing caller identity")
