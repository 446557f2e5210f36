"""
Integrity Validator.

Read-and-decide checks run by the officer lifecycle and transfer
workflow services *inside* their unit of work, before any write.

Propagation policy
------------------
* Expected business failures (inactive unit, sub-department of another
  department, stale source pair, no-op transfer) are accumulated as
  ``Violation`` records on a ``ValidationResult``.  The caller decides
  when to raise via ``core.domain.validation.raise_for_violations``.
* Missing records and authority checks are hard errors: ``NotFound``
  with an entity-specific code and ``InsufficientAuthority``.

The validator never trusts caller-supplied snapshots: every department,
sub-department and officer is re-read through the ``DirectoryStore`` /
ORM on each call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from django.contrib.auth import get_user_model

from accounts.models import RoleCode
from core.constants import ErrorCode
from core.domain.access import require_authority
from core.domain.exceptions import NotFound
from core.domain.validation import ValidationResult
from directory.services import DirectoryStore, OrmDirectoryStore

if TYPE_CHECKING:
    from accounts.models import User
    from directory.models import Department, SubDepartment


@dataclass(frozen=True)
class AssignmentDetails:
    """Resolved snapshot of a department / sub-department (/ officer) triple."""

    department: Department
    sub_department: SubDepartment | None
    officer: User | None = None

    @property
    def department_id(self) -> int:
        return self.department.pk

    @property
    def sub_department_id(self) -> int | None:
        return self.sub_department.pk if self.sub_department else None

    def describe(self) -> str:
        if self.sub_department is None:
            return self.department.name
        return f"{self.department.name} / {self.sub_department.name}"


@dataclass(frozen=True)
class TransferRequest:
    """
    Input to ``validate_transfer_constraints``.

    ``current_*`` is the stored assignment of the entity being moved
    (complaint or officer).  ``declared_from_*`` is what the client
    believes it is; when given it must match.
    """

    actor: Any
    minimum_role: str
    current_department_id: int | None
    current_sub_department_id: int | None
    to_department_id: Any
    to_sub_department_id: Any = None
    declared_from_department_id: Any = None
    declared_from_sub_department_id: Any = None
    require_sub_department: bool = False
    entity: str = "Complaint"


class IntegrityValidator:
    """
    Referential and business-rule checks shared by the core services.

    Parameters
    ----------
    directory : DirectoryStore, optional
        Source of department / sub-department records.  Defaults to the
        ORM-backed store.
    """

    def __init__(self, directory: DirectoryStore | None = None) -> None:
        self.directory = directory or OrmDirectoryStore()

    # ── Unit lookups ─────────────────────────────────────────────────

    def _resolve_department(self, department_id: Any, result: ValidationResult) -> Department:
        department = self.directory.get_department(department_id)
        if department is None:
            raise NotFound(
                f"Department with id {department_id} not found.",
                code=ErrorCode.DEPARTMENT_NOT_FOUND,
            )
        if not department.is_active:
            result.add(
                ErrorCode.INACTIVE_DEPARTMENT, "Department",
                f"Department '{department.name}' is not active.",
                department.pk,
            )
        return department

    def _resolve_sub_department(
        self,
        sub_department_id: Any,
        department: Department,
        result: ValidationResult,
    ) -> SubDepartment:
        sub_department = self.directory.get_sub_department(sub_department_id)
        if sub_department is None:
            raise NotFound(
                f"Sub-department with id {sub_department_id} not found.",
                code=ErrorCode.SUBDEPARTMENT_NOT_FOUND,
            )
        if not sub_department.is_active:
            result.add(
                ErrorCode.INACTIVE_SUBDEPARTMENT, "SubDepartment",
                f"Sub-department '{sub_department.name}' is not active.",
                sub_department.pk,
            )
        if sub_department.department_id != department.pk:
            result.add(
                ErrorCode.SUBDEPARTMENT_MISMATCH, "SubDepartment",
                f"Sub-department '{sub_department.name}' does not belong to "
                f"department '{department.name}'.",
                sub_department.pk,
            )
        return sub_department

    def _resolve_officer(self, officer_id: Any, result: ValidationResult) -> User:
        user_model = get_user_model()
        try:
            officer = user_model.objects.select_related("role").get(pk=officer_id)
        except (user_model.DoesNotExist, ValueError, TypeError):
            raise NotFound(
                f"Officer with id {officer_id} not found.",
                code=ErrorCode.OFFICER_NOT_FOUND,
            )
        if not officer.has_role(RoleCode.OFFICER):
            result.add(
                ErrorCode.INVALID_OFFICER_ROLE, "Officer",
                f"User '{officer.username}' does not hold the officer role.",
                officer.pk,
            )
        if not officer.is_active:
            result.add(
                ErrorCode.OFFICER_INACTIVE, "Officer",
                f"Officer '{officer.display_name}' is not active.",
                officer.pk,
            )
        return officer

    # ── Public checks ────────────────────────────────────────────────

    def validate_assignment(
        self,
        officer_id: Any,
        department_id: Any,
        sub_department_id: Any,
    ) -> ValidationResult[AssignmentDetails]:
        """
        Check a complete department / sub-department assignment.

        Order: department exists and active → sub-department exists and
        active → sub-department belongs to department → (when
        ``officer_id`` is given) officer exists, holds the officer role,
        is active.

        Raises:
            NotFound: department, sub-department or officer missing.
        """
        result: ValidationResult[AssignmentDetails] = ValidationResult()
        department = self._resolve_department(department_id, result)
        if sub_department_id is None:
            result.add(
                ErrorCode.INVALID_ASSIGNMENT, "Officer",
                "An assignment needs both a department and a sub-department.",
            )
            sub_department = None
        else:
            sub_department = self._resolve_sub_department(sub_department_id, department, result)
        officer = None
        if officer_id is not None:
            officer = self._resolve_officer(officer_id, result)
        result.value = AssignmentDetails(department, sub_department, officer)
        return result

    def validate_destination(
        self,
        department_id: Any,
        sub_department_id: Any = None,
    ) -> ValidationResult[AssignmentDetails]:
        """Like ``validate_assignment`` but the sub-department is optional."""
        result: ValidationResult[AssignmentDetails] = ValidationResult()
        department = self._resolve_department(department_id, result)
        sub_department = None
        if sub_department_id is not None:
            sub_department = self._resolve_sub_department(sub_department_id, department, result)
        result.value = AssignmentDetails(department, sub_department)
        return result

    def validate_transfer_constraints(
        self,
        request: TransferRequest,
    ) -> ValidationResult[AssignmentDetails]:
        """
        Check a move of a complaint or officer to a new unit.

        Checks: the actor holds ``request.minimum_role`` (raises); the
        declared source pair, when given, equals the stored one; the
        destination is valid; source and destination differ.  A
        department-level destination inside the source department counts
        as "no change".

        Raises:
            InsufficientAuthority: actor below the required role.
            NotFound: destination department / sub-department missing.
        """
        require_authority(request.actor, request.minimum_role)

        result: ValidationResult[AssignmentDetails] = ValidationResult()

        declared = (request.declared_from_department_id, request.declared_from_sub_department_id)
        if declared != (None, None):
            current = (request.current_department_id, request.current_sub_department_id)
            if tuple(_as_pk(v) for v in declared) != current:
                result.add(
                    ErrorCode.STALE_SOURCE_ASSIGNMENT, request.entity,
                    f"{request.entity} is no longer assigned to the declared source unit.",
                    {"declared": list(declared), "current": list(current)},
                )

        if request.require_sub_department:
            destination = self.validate_assignment(
                None, request.to_department_id, request.to_sub_department_id,
            )
        else:
            destination = self.validate_destination(
                request.to_department_id, request.to_sub_department_id,
            )
        result.extend(destination)
        result.value = destination.value

        target = destination.value
        if target.department_id == request.current_department_id and (
            target.sub_department_id is None
            or target.sub_department_id == request.current_sub_department_id
        ):
            result.add(
                ErrorCode.SAME_DEPARTMENT_SUBDEPARTMENT_TRANSFER, request.entity,
                "Source and destination are the same department and sub-department.",
                {"department": target.department_id, "sub_department": target.sub_department_id},
            )
        return result


def _as_pk(value: Any) -> Any:
    if value is None:
        return None
    pk = getattr(value, "pk", value)
    try:
        return int(pk)
    except (TypeError, ValueError):
        return pk
