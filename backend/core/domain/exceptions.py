"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  Every class carries a stable machine-readable
``code`` (see ``core.constants.ErrorCode``) next to the human-readable
``message``; ``as_dict()`` renders both for whatever boundary translates
the error (``core.domain.results.run_operation`` does it for callers that
want result values instead of exceptions).

Taxonomy
--------
┌───────────────────────┬──────────────────────────────┬───────────┐
│ Domain Exception      │ Meaning                      │ Retry?    │
├───────────────────────┼──────────────────────────────┼───────────┤
│ DomainError           │ Malformed request            │ no        │
│ IntegrityViolation    │ Precondition failed          │ no (fix)  │
│ InsufficientAuthority │ Actor lacks required role    │ no        │
│ NotFound              │ Referenced record missing    │ no        │
│ Conflict              │ Clashes with current state   │ re-fetch  │
│ InvalidTransition     │ State machine refused        │ re-fetch  │
│ TransientStoreFailure │ Lock timeout / write clash   │ yes       │
└───────────────────────┴──────────────────────────────┴───────────┘

Recommended usage inside a service::

    from core.constants import ErrorCode
    from core.domain.exceptions import InvalidTransition

    if transfer.status != TransferStatus.PENDING:
        raise InvalidTransition(
            code=ErrorCode.TRANSFER_NOT_PENDING,
            current=transfer.status,
            target=TransferStatus.ACCEPTED,
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from core.constants import ErrorCode

if TYPE_CHECKING:
    from core.domain.validation import Violation


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    ``details`` is an optional JSON-friendly mapping with structured
    context (field errors, offending ids).
    """

    default_code = ErrorCode.INVALID_REQUEST
    default_message = "A business rule was violated."
    retryable = False

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class IntegrityViolation(DomainError):
    """
    One or more referential / business preconditions failed.

    ``constraint`` names the first failing rule and doubles as the error
    code; ``violations`` carries every rule that failed so callers can
    show all of them at once.
    """

    default_code = ErrorCode.INVALID_ASSIGNMENT
    default_message = "Integrity constraint violated."

    def __init__(
        self,
        message: str | None = None,
        *,
        constraint: str | None = None,
        entity: str = "",
        violations: list[Violation] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.violations = list(violations or [])
        if constraint is None and self.violations:
            constraint = self.violations[0].constraint
        if message is None and self.violations:
            message = "; ".join(v.message for v in self.violations)
        self.constraint = constraint or self.default_code
        self.entity = entity
        super().__init__(message, code=self.constraint, details=details)

    def as_dict(self) -> dict[str, Any]:
        payload = super().as_dict()
        payload["constraint"] = self.constraint
        payload["entity"] = self.entity
        if self.violations:
            payload["violations"] = [v.as_dict() for v in self.violations]
        return payload


class PermissionDenied(DomainError):
    """
    The acting user does not have the required role for this operation.
    """

    default_code = ErrorCode.INSUFFICIENT_AUTHORITY
    default_message = "You do not have permission to perform this action."


class InsufficientAuthority(PermissionDenied):
    """
    The actor's role is below the level the operation requires.

    Example::

        raise InsufficientAuthority(required="SUPER_ADMIN", actual="ADMIN")
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        required: str | None = None,
        actual: str | None = None,
    ) -> None:
        if message is None:
            message = (
                f"Role '{actual or 'NONE'}' is not permitted for this operation. "
                f"Required: {required}."
            )
        super().__init__(
            message,
            details={"required_role": required, "actual_role": actual},
        )
        self.required = required
        self.actual = actual


class NotFound(DomainError):
    """
    The requested resource does not exist.  ``code`` names the entity
    (``TRANSFER_NOT_FOUND``, ``OFFICER_NOT_FOUND`` ...).
    """

    default_code = "NOT_FOUND"
    default_message = "The requested resource was not found."


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: duplicate pending transfer, existing connection.
    Callers must re-read the current state before retrying.
    """

    default_code = "CONFLICT"
    default_message = "The operation conflicts with the current state."


class InvalidTransition(Conflict):
    """
    A state-machine transition that is not allowed from the current status.

    Inherits from ``Conflict`` because an invalid transition IS a conflict
    with the resource's current state.

    Example::

        raise InvalidTransition(
            code=ErrorCode.TRANSFER_NOT_PENDING,
            current="ACCEPTED",
            target="REJECTED",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"({reason})")
            message = " ".join(parts) + "."
        super().__init__(
            message,
            code=code,
            details={"current": current, "target": target},
        )
        self.current = current
        self.target = target
        self.reason = reason


class TransientStoreFailure(DomainError):
    """
    The backing store timed out or aborted the transaction (lock wait,
    serialization failure, deadlock).  Nothing was committed and every
    precondition is re-checked on the next attempt, so the whole
    operation is safe to retry.
    """

    default_code = ErrorCode.TRANSIENT_STORE_FAILURE
    default_message = "The data store is temporarily unavailable; retry the operation."
    retryable = True
