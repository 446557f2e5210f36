"""
core.domain.results — Success/failure result values for exposed operations.

Service methods raise ``DomainError`` subclasses.  Callers that prefer
result values (batch jobs, the management commands, future API views)
wrap the call with ``run_operation`` and branch on ``result.ok`` and the
stable ``result.code``.  Only domain errors are converted; anything else
(programming errors, store unreachable) propagates untouched.

Usage::

    from core.domain.results import run_operation

    result = run_operation(workflow.accept_transfer, actor, transfer_id)
    if not result.ok:
        return {"code": result.code, "message": result.message}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from core.domain.exceptions import DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    ok: bool
    data: T | None = None
    code: str | None = None
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False

    @classmethod
    def success(cls, data: T) -> OperationResult[T]:
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, exc: DomainError) -> OperationResult[T]:
        details = exc.as_dict()
        details.pop("code", None)
        details.pop("message", None)
        return cls(
            ok=False,
            code=exc.code,
            message=exc.message,
            details=details,
            retryable=exc.retryable,
        )


def run_operation(fn: Callable[..., T], *args: Any, **kwargs: Any) -> OperationResult[T]:
    """
    Call ``fn`` and fold its outcome into an ``OperationResult``.

    Domain errors are logged at ``warning`` with their code and turned
    into failure results.
    """
    try:
        return OperationResult.success(fn(*args, **kwargs))
    except DomainError as exc:
        logger.warning(
            "%s failed with %s: %s",
            getattr(fn, "__qualname__", repr(fn)), exc.code, exc.message,
        )
        return OperationResult.failure(exc)
