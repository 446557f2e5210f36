"""
Accounts Service Layer.

This module is the **single source of truth** for officer lifecycle
rules.  Callers validate nothing themselves: they hand the raw command
payload to a service method, which validates it, checks authority and
referential integrity, and performs the mutation plus its audit record
inside one ``unit_of_work()``.

Architecture
------------
- ``RoleService``              — default role seeding / lookup.
- ``OfficerLifecycleService``  — create, transfer and retire officers.

Officer state machine::

    CREATED (active) ──transfer──▶ TRANSFERRED (active) ─┐
         │                              ▲                │ transfer
         │                              └────────────────┘
         └──────────────retire──────────────▶ RETIRED (row deleted)

Retirement is a hard delete.  The ``OFFICER_RETIRE`` audit row, written
in the same transaction *before* the delete, is the only surviving
trace.  Complaints still pointing at the officer are left for the
consistency auditor to clear.
"""

from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from typing import Any

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from core.constants import (
    OFFICER_CODE_ALLOCATION_ATTEMPTS,
    OFFICER_SEQUENCE_WIDTH,
    PASSWORD_DIGITS,
    PASSWORD_LOWERCASE,
    PASSWORD_SYMBOLS,
    PASSWORD_UPPERCASE,
    TEMPORARY_PASSWORD_LENGTH,
    ErrorCode,
)
from core.domain.access import require_authority
from core.domain.audit import (
    AuditEvent,
    AuditSink,
    DatabaseAuditSink,
    OfficerCreatedDetails,
    OfficerRetiredDetails,
    OfficerTransferredDetails,
)
from core.domain.exceptions import IntegrityViolation, NotFound, TransientStoreFailure
from core.domain.transactions import lock_for_update, unit_of_work
from core.domain.validation import raise_for_violations
from core.models import AuditAction, AuditLog
from core.serializers import validate_payload
from directory.models import SubDepartment
from directory.services import DirectoryStore
from integrity.validators import IntegrityValidator, TransferRequest

from .models import ROLE_LEVELS, Role, RoleCode
from .serializers import OfficerCreateSerializer, OfficerTransferSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


# ═══════════════════════════════════════════════════════════════════
#  Identifier / credential helpers
# ═══════════════════════════════════════════════════════════════════


def officer_code_prefix(department_code: str, sub_department_code: str, year: int) -> str:
    return f"{department_code}_{sub_department_code}_{year}_"


def next_officer_code(department_code: str, sub_department_code: str, year: int | None = None) -> str:
    """
    Next ``{DEPT}_{SUBDEPT}_{YEAR}_{NNNN}`` code.

    Takes the lexicographically greatest code with the same prefix and
    increments its trailing integer.  Codes of retired officers survive
    only in ``OFFICER_CREATE`` audit rows, so those count too and a
    retired code is never handed out again.  Fixed-width zero padding
    keeps lexicographic and numeric order identical.
    """
    year = year or timezone.now().year
    prefix = officer_code_prefix(department_code, sub_department_code, year)
    latest = (
        User.objects
        .filter(officer_code__startswith=prefix)
        .aggregate(latest=Max("officer_code"))["latest"]
    )
    recorded = (
        AuditLog.objects
        .filter(action=AuditAction.OFFICER_CREATE, details__officer_code__startswith=prefix)
        .values_list("details__officer_code", flat=True)
    )
    latest = max([code for code in (latest, *recorded) if code], default=None)
    sequence = 1
    if latest:
        match = re.search(r"(\d+)$", latest)
        if match:
            sequence = int(match.group(1)) + 1
    return f"{prefix}{sequence:0{OFFICER_SEQUENCE_WIDTH}d}"


def generate_temporary_password(length: int = TEMPORARY_PASSWORD_LENGTH) -> str:
    """
    Random one-time password with at least one uppercase letter, one
    lowercase letter, one digit and one symbol, shuffled.
    """
    rng = secrets.SystemRandom()
    classes = (PASSWORD_UPPERCASE, PASSWORD_LOWERCASE, PASSWORD_DIGITS, PASSWORD_SYMBOLS)
    alphabet = "".join(classes)
    chars = [rng.choice(group) for group in classes]
    chars.extend(rng.choice(alphabet) for _ in range(max(length, len(classes)) - len(classes)))
    rng.shuffle(chars)
    return "".join(chars)


def _history_entry(officer, to_department_id, to_sub_department_id, actor, reason) -> dict[str, Any]:
    return {
        "from_department": officer.assigned_department_id,
        "from_sub_department": officer.assigned_sub_department_id,
        "to_department": to_department_id,
        "to_sub_department": to_sub_department_id,
        "transferred_by": getattr(actor, "pk", None),
        "reason": reason,
        "transferred_at": timezone.now().isoformat(),
    }


@dataclass(frozen=True)
class CreatedOfficer:
    """Result of ``create_officer``; the plaintext password is shown once."""

    officer: Any
    temporary_password: str


# ═══════════════════════════════════════════════════════════════════
#  Role Service
# ═══════════════════════════════════════════════════════════════════


DEFAULT_ROLES: list[tuple[str, str, str]] = [
    (RoleCode.SUPER_ADMIN, "Super Admin", "Manages officers, departments and data repair."),
    (RoleCode.ADMIN, "Admin", "Manages department connections."),
    (RoleCode.OFFICER, "Officer", "Handles and transfers complaints."),
    (RoleCode.CITIZEN, "Citizen", "Files complaints."),
]


class RoleService:
    """Seeding and lookup of the fixed platform roles."""

    @staticmethod
    @transaction.atomic
    def ensure_default_roles() -> tuple[int, int]:
        """
        Create or update the four default roles.  Idempotent.

        Returns
        -------
        tuple[int, int]
            ``(created, updated)`` counts.
        """
        created = updated = 0
        for code, name, description in DEFAULT_ROLES:
            role, was_created = Role.objects.update_or_create(
                code=code,
                defaults={
                    "name": name,
                    "description": description,
                    "hierarchy_level": ROLE_LEVELS[code],
                },
            )
            if was_created:
                created += 1
            else:
                updated += 1
        return created, updated

    @staticmethod
    def get_role(code: str) -> Role:
        try:
            return Role.objects.get(code=code)
        except Role.DoesNotExist:
            raise NotFound(
                f"Role '{code}' is not configured. Run 'manage.py setup_roles'.",
                code="ROLE_NOT_FOUND",
            )


# ═══════════════════════════════════════════════════════════════════
#  Officer Lifecycle Service
# ═══════════════════════════════════════════════════════════════════


class OfficerLifecycleService:
    """
    Create / transfer / retire officers.

    Collaborators are injected so tests can substitute them; the defaults
    are the ORM directory, the integrity validator built on it, and the
    database audit sink.
    """

    def __init__(
        self,
        directory: DirectoryStore | None = None,
        audit_sink: AuditSink | None = None,
        validator: IntegrityValidator | None = None,
    ) -> None:
        self.validator = validator or IntegrityValidator(directory)
        self.directory = self.validator.directory
        self.audit_sink = audit_sink or DatabaseAuditSink()

    # ── Create ──────────────────────────────────────────────────────

    def create_officer(self, actor: Any, payload: dict[str, Any]) -> CreatedOfficer:
        """
        Create an officer bound to one department / sub-department.

        Parameters
        ----------
        actor : User
            Must be a Super Admin.
        payload : dict
            ``full_name``, ``department``, ``sub_department`` and optional
            ``email`` / ``phone_number`` (see ``OfficerCreateSerializer``).

        Returns
        -------
        CreatedOfficer
            The saved officer plus the one-time plaintext password.

        Raises
        ------
        InsufficientAuthority, DomainError (payload), NotFound,
        IntegrityViolation, TransientStoreFailure
        """
        require_authority(actor, RoleCode.SUPER_ADMIN)
        data = validate_payload(OfficerCreateSerializer, payload)
        officer_role = RoleService.get_role(RoleCode.OFFICER)

        with unit_of_work():
            result = self.validator.validate_assignment(
                None, data["department"], data["sub_department"],
            )
            raise_for_violations(result, entity="Officer")
            assignment = result.value

            # Serialises code allocation per sub-department.
            lock_for_update(
                SubDepartment,
                assignment.sub_department_id,
                code=ErrorCode.SUBDEPARTMENT_NOT_FOUND,
            )

            password = generate_temporary_password()
            officer = self._insert_officer(data, assignment, officer_role, password)

            self.audit_sink.record(AuditEvent(
                action=AuditAction.OFFICER_CREATE,
                actor=actor,
                entity_type="Officer",
                entity_id=officer.pk,
                details=OfficerCreatedDetails(
                    officer_code=officer.officer_code,
                    officer_name=officer.full_name,
                    department_id=assignment.department_id,
                    department_code=assignment.department.code,
                    sub_department_id=assignment.sub_department_id,
                    sub_department_code=assignment.sub_department.code,
                ),
            ))

        logger.info(
            "Officer %s (pk=%d) created in %s by user=%s",
            officer.officer_code, officer.pk, assignment.describe(), actor.pk,
        )
        return CreatedOfficer(officer=officer, temporary_password=password)

    def _insert_officer(self, data, assignment, officer_role, password):
        """
        Insert the officer row, retrying on an officer-code collision.

        The sub-department lock makes collisions rare; the unique
        constraint on ``officer_code`` catches the rest.
        """
        for attempt in range(1, OFFICER_CODE_ALLOCATION_ATTEMPTS + 1):
            code = next_officer_code(
                assignment.department.code, assignment.sub_department.code,
            )
            try:
                with transaction.atomic():
                    officer = User.objects.create_user(
                        username=code.lower(),
                        password=password,
                        email=data.get("email", ""),
                        full_name=data["full_name"],
                        phone_number=data.get("phone_number", ""),
                        role=officer_role,
                        officer_code=code,
                        assigned_department=assignment.department,
                        assigned_sub_department=assignment.sub_department,
                        is_temporary_password=True,
                        password_change_required=True,
                    )
                return officer
            except IntegrityError:
                logger.warning(
                    "Officer code %s already taken (attempt %d/%d)",
                    code, attempt, OFFICER_CODE_ALLOCATION_ATTEMPTS,
                )
        raise TransientStoreFailure(
            "Could not allocate a unique officer code; retry the operation.",
        )

    # ── Transfer ────────────────────────────────────────────────────

    def transfer_officer(self, actor: Any, officer_id: Any, payload: dict[str, Any]):
        """
        Reassign an active officer to another department / sub-department.

        The assignment change, the officer's transfer-history entry and
        the ``OFFICER_TRANSFER`` audit row commit together.

        Raises
        ------
        InsufficientAuthority
            Actor is not a Super Admin.
        NotFound
            ``OFFICER_NOT_FOUND`` / destination missing.
        IntegrityViolation
            ``OFFICER_INACTIVE``, inactive or mismatched destination.
        Conflict
            ``SAME_DEPARTMENT_SUBDEPARTMENT_TRANSFER`` or
            ``STALE_SOURCE_ASSIGNMENT``.
        """
        require_authority(actor, RoleCode.SUPER_ADMIN)
        data = validate_payload(OfficerTransferSerializer, payload)

        with unit_of_work():
            officer = self._lock_officer(officer_id)
            if not officer.is_active:
                raise IntegrityViolation(
                    f"Officer '{officer.display_name}' is not active.",
                    constraint=ErrorCode.OFFICER_INACTIVE,
                    entity="Officer",
                )

            result = self.validator.validate_transfer_constraints(TransferRequest(
                actor=actor,
                minimum_role=RoleCode.SUPER_ADMIN,
                current_department_id=officer.assigned_department_id,
                current_sub_department_id=officer.assigned_sub_department_id,
                to_department_id=data["to_department"],
                to_sub_department_id=data["to_sub_department"],
                declared_from_department_id=data.get("from_department"),
                declared_from_sub_department_id=data.get("from_sub_department"),
                require_sub_department=True,
                entity="Officer",
            ))
            raise_for_violations(result, entity="Officer")
            destination = result.value

            from_department_id = officer.assigned_department_id
            from_sub_department_id = officer.assigned_sub_department_id

            officer.transfer_history = [
                *(officer.transfer_history or []),
                _history_entry(
                    officer, destination.department_id,
                    destination.sub_department_id, actor, data["reason"],
                ),
            ]
            officer.assigned_department = destination.department
            officer.assigned_sub_department = destination.sub_department
            officer.save(update_fields=[
                "assigned_department", "assigned_sub_department", "transfer_history",
            ])

            self.audit_sink.record(AuditEvent(
                action=AuditAction.OFFICER_TRANSFER,
                actor=actor,
                entity_type="Officer",
                entity_id=officer.pk,
                details=OfficerTransferredDetails(
                    officer_code=officer.officer_code or "",
                    from_department_id=from_department_id,
                    from_sub_department_id=from_sub_department_id,
                    to_department_id=destination.department_id,
                    to_sub_department_id=destination.sub_department_id,
                    reason=data["reason"],
                ),
            ))

        logger.info(
            "Officer %s (pk=%d) transferred to %s by user=%s",
            officer.officer_code, officer.pk, destination.describe(), actor.pk,
        )
        return officer

    # ── Retire ──────────────────────────────────────────────────────

    def retire_officer(self, actor: Any, officer_id: Any) -> OfficerRetiredDetails:
        """
        Permanently remove an officer.

        The full snapshot is written to the audit sink first and the row
        is deleted afterwards, in the same transaction.  Complaints
        assigned to the officer keep the dangling reference until
        ``ConsistencyAuditor.cleanup_orphaned_records`` runs.

        Returns
        -------
        OfficerRetiredDetails
            The snapshot that was audited.
        """
        require_authority(actor, RoleCode.SUPER_ADMIN)

        with unit_of_work():
            officer = self._lock_officer(officer_id)
            snapshot = OfficerRetiredDetails(
                officer_code=officer.officer_code or "",
                officer_name=officer.display_name,
                email=officer.email,
                phone_number=officer.phone_number,
                last_department_id=officer.assigned_department_id,
                last_sub_department_id=officer.assigned_sub_department_id,
                transfer_history=list(officer.transfer_history or []),
            )
            self.audit_sink.record(AuditEvent(
                action=AuditAction.OFFICER_RETIRE,
                actor=actor,
                entity_type="Officer",
                entity_id=officer.pk,
                details=snapshot,
            ))
            officer_pk = officer.pk
            officer.delete()

        logger.info(
            "Officer %s (pk=%d) retired by user=%s",
            snapshot.officer_code, officer_pk, actor.pk,
        )
        return snapshot

    @staticmethod
    def _lock_officer(officer_id: Any):
        officer = lock_for_update(
            User, officer_id,
            code=ErrorCode.OFFICER_NOT_FOUND,
            select_related=("role",),
        )
        if not officer.has_role(RoleCode.OFFICER):
            raise NotFound(
                f"Officer with id {officer_id} not found.",
                code=ErrorCode.OFFICER_NOT_FOUND,
            )
        return officer
