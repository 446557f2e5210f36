"""
core.domain.validation — Structured validation results.

Validators report expected business failures as values instead of
raising: a ``ValidationResult`` accumulates frozen ``Violation`` records
and optionally carries a resolved payload (e.g. the department /
sub-department snapshot an assignment check produced).  The calling
service decides when to turn a failed result into an exception via
``raise_for_violations``.

Usage::

    result = validator.validate_assignment(None, dept_id, sub_id)
    raise_for_violations(result, entity="Officer")
    details = result.value
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from core.constants import CONFLICT_CONSTRAINTS
from core.domain.exceptions import Conflict, IntegrityViolation

T = TypeVar("T")


@dataclass(frozen=True)
class Violation:
    """A single failed precondition."""

    constraint: str
    entity: str
    message: str
    reference: Any = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "constraint": self.constraint,
            "entity": self.entity,
            "message": self.message,
            "reference": self.reference,
        }


@dataclass
class ValidationResult(Generic[T]):
    """Outcome of a validator call: ``value`` on success, ``violations`` otherwise."""

    value: T | None = None
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def add(self, constraint: str, entity: str, message: str, reference: Any = None) -> None:
        self.violations.append(Violation(constraint, entity, message, reference))

    def extend(self, other: ValidationResult) -> None:
        self.violations.extend(other.violations)

    def constraints(self) -> list[str]:
        return [v.constraint for v in self.violations]


def raise_for_violations(result: ValidationResult, *, entity: str) -> None:
    """
    Raise the appropriate domain error for a failed ``ValidationResult``.

    The first violation decides the error class: state clashes (same
    pair, stale source) become ``Conflict``; everything else becomes
    ``IntegrityViolation``.  All violations travel in ``details``.
    """
    if result.ok:
        return

    first = result.violations[0]
    if first.constraint in CONFLICT_CONSTRAINTS:
        raise Conflict(
            first.message,
            code=first.constraint,
            details={"violations": [v.as_dict() for v in result.violations]},
        )
    raise IntegrityViolation(entity=entity, violations=result.violations)
