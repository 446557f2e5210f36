"""
Transfers app Service Layer.

This module is the **single source of truth** for moving complaints
between organisational units and for the department-connection graph
that those moves build up.

Architecture
------------
- ``ConnectionService``        — get-or-create / establish / (de)activate
                                 department connections, usage counters,
                                 per-department and global statistics.
- ``TransferWorkflowService``  — the transfer state machine: initiate,
                                 accept, reject.
- ``TransferQueryService``     — read-only helpers: pending transfers for a
                                 department, history of a complaint,
                                 outcome statistics.

Transfer state machine::

    PENDING ──accept──▶ ACCEPTED   (complaint moves, officer unassigned)
       │
       └─────reject──▶ REJECTED   (complaint stays where it was)

Both outcomes are terminal.  Every mutating method runs inside one
``unit_of_work()`` and re-checks its preconditions under row locks:
the complaint row is always locked before any transfer row, and the
partial unique index on ``(complaint) WHERE status = 'PENDING'`` is the
final backstop for the one-pending-transfer rule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import F, Q, QuerySet
from django.utils import timezone

from accounts.models import RoleCode
from complaints.models import Complaint
from core.constants import (
    MOST_ACTIVE_CONNECTIONS_LIMIT,
    REJECTION_REASON_MAX_LENGTH,
    REJECTION_REASON_MIN_LENGTH,
    ErrorCode,
)
from core.domain.access import get_user_role_code, require_authority
from core.domain.audit import (
    AuditEvent,
    AuditSink,
    ConnectionChangedDetails,
    DatabaseAuditSink,
    TransferInitiatedDetails,
    TransferResolvedDetails,
)
from core.domain.exceptions import (
    Conflict,
    IntegrityViolation,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from core.domain.transactions import lock_for_update, unit_of_work
from core.domain.validation import raise_for_violations
from core.models import AuditAction
from core.serializers import validate_payload
from directory.services import DirectoryStore
from integrity.validators import IntegrityValidator, TransferRequest

from .models import (
    ComplaintTransfer,
    ConnectionType,
    DepartmentConnection,
    TransferStatus,
    TransferType,
)
from .serializers import ConnectionCreateSerializer, InitiateTransferSerializer

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Connection Service
# ═══════════════════════════════════════════════════════════════════


class ConnectionService:
    """
    Manages the undirected ``DepartmentConnection`` graph.

    ``get_or_create_connection`` is the lazy, idempotent path used by the
    transfer workflow; ``establish_connection`` is the explicit
    administrative path and refuses to touch an existing pair.
    """

    def __init__(
        self,
        audit_sink: AuditSink | None = None,
        validator: IntegrityValidator | None = None,
    ) -> None:
        self.audit_sink = audit_sink or DatabaseAuditSink()
        self.validator = validator or IntegrityValidator()

    @staticmethod
    def _pair(dept_a_id: int, dept_b_id: int) -> tuple[int, int]:
        if dept_a_id == dept_b_id:
            raise IntegrityViolation(
                "A department cannot be connected to itself.",
                constraint=ErrorCode.SELF_CONNECTION,
                entity="DepartmentConnection",
            )
        return DepartmentConnection.normalise_pair(dept_a_id, dept_b_id)

    @staticmethod
    def _lock_pair(low: int, high: int) -> DepartmentConnection | None:
        return (
            DepartmentConnection.objects
            .select_for_update()
            .filter(department_a_id=low, department_b_id=high)
            .first()
        )

    def get_or_create_connection(
        self,
        dept_a_id: int,
        dept_b_id: int,
        established_by: Any = None,
    ) -> tuple[DepartmentConnection, bool]:
        """
        Return the connection for the unordered pair, creating it if absent.

        Must run inside ``unit_of_work()``.  An inactive connection is
        reactivated instead of duplicated.  A concurrent creator that wins
        the insert race is absorbed: the unique constraint rejects our
        insert and the winner's row is returned.

        Returns
        -------
        tuple[DepartmentConnection, bool]
            The locked connection and whether it was created by this call.
        """
        low, high = self._pair(dept_a_id, dept_b_id)

        connection = self._lock_pair(low, high)
        if connection is None:
            try:
                with transaction.atomic():
                    connection = DepartmentConnection.objects.create(
                        department_a_id=low,
                        department_b_id=high,
                        connection_type=ConnectionType.BOTH,
                        established_by=established_by,
                    )
                logger.info(
                    "Department connection %d <-> %d created (pk=%d)",
                    low, high, connection.pk,
                )
                return connection, True
            except IntegrityError:
                connection = self._lock_pair(low, high)
                if connection is None:
                    raise

        if not connection.is_active:
            connection.is_active = True
            connection.save(update_fields=["is_active", "updated_at"])
            logger.info("Department connection pk=%d reactivated by transfer", connection.pk)
        return connection, False

    @staticmethod
    def register_transfer(connection: DepartmentConnection, at: datetime) -> None:
        DepartmentConnection.objects.filter(pk=connection.pk).update(
            transfer_count=F("transfer_count") + 1,
            last_transfer_at=at,
            updated_at=at,
        )
        connection.refresh_from_db(fields=["transfer_count", "last_transfer_at", "updated_at"])

    def record_communication(
        self,
        dept_a_id: int,
        dept_b_id: int,
        actor: Any = None,
    ) -> DepartmentConnection:
        """Count one inter-department communication on the pair's connection."""
        now = timezone.now()
        with unit_of_work():
            connection, _ = self.get_or_create_connection(dept_a_id, dept_b_id, actor)
            DepartmentConnection.objects.filter(pk=connection.pk).update(
                communication_count=F("communication_count") + 1,
                last_communication_at=now,
                updated_at=now,
            )
            connection.refresh_from_db()
        return connection

    # ── Administrative operations ───────────────────────────────────

    def establish_connection(self, actor: Any, payload: dict[str, Any]) -> DepartmentConnection:
        """
        Explicitly create a connection between two active departments.

        Raises
        ------
        InsufficientAuthority
            Actor is below Admin.
        IntegrityViolation
            ``SELF_CONNECTION`` or an inactive department.
        Conflict
            ``CONNECTION_ALREADY_EXISTS`` for any existing record of the
            pair, active or not, including a concurrent creator's row.
        """
        require_authority(actor, RoleCode.ADMIN)
        data = validate_payload(ConnectionCreateSerializer, payload)

        with unit_of_work():
            low, high = self._pair(data["department_a"], data["department_b"])
            for department_id in (low, high):
                raise_for_violations(
                    self.validator.validate_destination(department_id),
                    entity="DepartmentConnection",
                )

            if self._lock_pair(low, high) is not None:
                raise Conflict(
                    "A connection between these departments already exists.",
                    code=ErrorCode.CONNECTION_ALREADY_EXISTS,
                )
            try:
                with transaction.atomic():
                    connection = DepartmentConnection.objects.create(
                        department_a_id=low,
                        department_b_id=high,
                        connection_type=data["connection_type"],
                        notes=data["notes"],
                        established_by=actor,
                    )
            except IntegrityError:
                raise Conflict(
                    "A connection between these departments already exists.",
                    code=ErrorCode.CONNECTION_ALREADY_EXISTS,
                )
            self._audit(AuditAction.CONNECTION_CREATE, actor, connection)

        logger.info(
            "Department connection %d <-> %d established (pk=%d) by user=%s",
            low, high, connection.pk, actor.pk,
        )
        return connection

    def deactivate_connection(self, actor: Any, connection_id: Any) -> DepartmentConnection:
        """Soft-deactivate a connection.  No-op when already inactive."""
        return self._set_active(actor, connection_id, active=False)

    def reactivate_connection(self, actor: Any, connection_id: Any) -> DepartmentConnection:
        """Reactivate a soft-deactivated connection.  No-op when already active."""
        return self._set_active(actor, connection_id, active=True)

    def _set_active(self, actor: Any, connection_id: Any, *, active: bool) -> DepartmentConnection:
        require_authority(actor, RoleCode.ADMIN)
        with unit_of_work():
            connection = lock_for_update(
                DepartmentConnection, connection_id, code=ErrorCode.CONNECTION_NOT_FOUND,
            )
            if connection.is_active == active:
                return connection
            connection.is_active = active
            connection.save(update_fields=["is_active", "updated_at"])
            action = AuditAction.CONNECTION_REACTIVATE if active else AuditAction.CONNECTION_DEACTIVATE
            self._audit(action, actor, connection)

        logger.info(
            "Department connection pk=%d %s by user=%s",
            connection.pk, "reactivated" if active else "deactivated", actor.pk,
        )
        return connection

    def _audit(self, action: str, actor: Any, connection: DepartmentConnection) -> None:
        self.audit_sink.record(AuditEvent(
            action=action,
            actor=actor,
            entity_type="DepartmentConnection",
            entity_id=connection.pk,
            details=ConnectionChangedDetails(
                department_a_id=connection.department_a_id,
                department_b_id=connection.department_b_id,
                is_active=connection.is_active,
                transfer_enabled=connection.transfer_enabled,
                communication_enabled=connection.communication_enabled,
            ),
        ))

    # ── Queries ─────────────────────────────────────────────────────

    @staticmethod
    def connections_for_department(
        department_id: int,
        *,
        active_only: bool = True,
    ) -> QuerySet[DepartmentConnection]:
        qs = DepartmentConnection.objects.filter(
            Q(department_a_id=department_id) | Q(department_b_id=department_id),
        ).select_related("department_a", "department_b")
        if active_only:
            qs = qs.filter(is_active=True)
        return qs.order_by("-transfer_count", "-communication_count", "id")

    @classmethod
    def connection_stats(cls, department_id: int) -> dict[str, Any]:
        """
        Totals over a department's active connections.

        Example::

            {"total_connections": 2, "total_transfers": 7,
             "total_communications": 3, "avg_transfers_per_connection": 3.5}
        """
        rows = list(
            cls.connections_for_department(department_id)
            .values_list("transfer_count", "communication_count")
        )
        total_transfers = sum(transfers for transfers, _ in rows)
        return {
            "total_connections": len(rows),
            "total_transfers": total_transfers,
            "total_communications": sum(comms for _, comms in rows),
            "avg_transfers_per_connection": total_transfers / len(rows) if rows else 0,
        }

    @staticmethod
    def most_active_connections(limit: int = MOST_ACTIVE_CONNECTIONS_LIMIT) -> list[DepartmentConnection]:
        return list(
            DepartmentConnection.objects
            .filter(is_active=True)
            .select_related("department_a", "department_b")
            .order_by("-transfer_count", "-communication_count", "id")[:limit]
        )


# ═══════════════════════════════════════════════════════════════════
#  Transfer Workflow Service
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class InitiatedTransfer:
    transfer: ComplaintTransfer
    connection: DepartmentConnection | None
    connection_created: bool


class TransferWorkflowService:
    """
    Initiate, accept and reject complaint transfers.

    Parameters
    ----------
    directory : DirectoryStore, optional
    audit_sink : AuditSink, optional
    validator : IntegrityValidator, optional
    connections : ConnectionService, optional
        All default to the ORM / database-backed implementations and share
        the same audit sink and validator.
    """

    def __init__(
        self,
        directory: DirectoryStore | None = None,
        audit_sink: AuditSink | None = None,
        validator: IntegrityValidator | None = None,
        connections: ConnectionService | None = None,
    ) -> None:
        self.validator = validator or IntegrityValidator(directory)
        self.audit_sink = audit_sink or DatabaseAuditSink()
        self.connections = connections or ConnectionService(self.audit_sink, self.validator)

    # ── Initiate ────────────────────────────────────────────────────

    def initiate_transfer(self, actor: Any, complaint_id: Any, payload: dict[str, Any]) -> InitiatedTransfer:
        """
        Propose moving a complaint to another department / sub-department.

        Validation order (all under the complaint row lock):
            1. complaint exists
            2. transfer constraints (role, declared source, destination,
               source ≠ destination)
            3. no PENDING transfer for the complaint
            4. the actor's sub-department has no PENDING outbound transfer
               for the complaint

        Writes (one transaction): the ``PENDING`` transfer, the complaint's
        history entry and counters, the connection and its counters (cross-
        department only), and the ``COMPLAINT_TRANSFER_INITIATED`` audit row.

        Raises
        ------
        InsufficientAuthority, DomainError (payload), NotFound,
        IntegrityViolation, Conflict (``SAME_DEPARTMENT_SUBDEPARTMENT_TRANSFER``,
        ``STALE_SOURCE_ASSIGNMENT``, ``DUPLICATE_PENDING_TRANSFER``,
        ``TRANSFER_ALREADY_SENT``), TransientStoreFailure
        """
        actor_role = require_authority(actor, RoleCode.OFFICER)
        data = validate_payload(InitiateTransferSerializer, payload)

        with unit_of_work():
            complaint = lock_for_update(Complaint, complaint_id, code=ErrorCode.COMPLAINT_NOT_FOUND)

            result = self.validator.validate_transfer_constraints(TransferRequest(
                actor=actor,
                minimum_role=RoleCode.OFFICER,
                current_department_id=complaint.department_id,
                current_sub_department_id=complaint.sub_department_id,
                to_department_id=data["to_department"],
                to_sub_department_id=data["to_sub_department"],
                declared_from_department_id=data["from_department"],
                declared_from_sub_department_id=data["from_sub_department"],
                entity="Complaint",
            ))
            raise_for_violations(result, entity="Complaint")
            destination = result.value

            if ComplaintTransfer.objects.pending_for_complaint(complaint.pk).exists():
                raise Conflict(
                    f"Complaint {complaint.complaint_number} already has a pending transfer.",
                    code=ErrorCode.DUPLICATE_PENDING_TRANSFER,
                )
            actor_sub_id = getattr(actor, "assigned_sub_department_id", None)
            if actor_sub_id and ComplaintTransfer.objects.pending_outbound_from(
                complaint.pk, actor_sub_id,
            ).exists():
                raise Conflict(
                    "Your sub-department already has a pending transfer for this complaint.",
                    code=ErrorCode.TRANSFER_ALREADY_SENT,
                )

            now = timezone.now()
            connection, connection_created = None, False
            if destination.department_id != complaint.department_id:
                connection, connection_created = self.connections.get_or_create_connection(
                    complaint.department_id, destination.department_id, actor,
                )
                self.connections.register_transfer(connection, now)

            transfer_type = data["transfer_type"] or (
                TransferType.SUB_DEPARTMENT
                if destination.department_id == complaint.department_id
                else TransferType.DEPARTMENT
            )
            try:
                with transaction.atomic():
                    transfer = ComplaintTransfer.objects.create(
                        complaint=complaint,
                        from_department_id=complaint.department_id,
                        from_sub_department_id=complaint.sub_department_id,
                        to_department=destination.department,
                        to_sub_department=destination.sub_department,
                        transfer_type=transfer_type,
                        transfer_reason=data["transfer_reason"],
                        transfer_notes=data["transfer_notes"],
                        initiated_by=actor,
                        initiated_by_role=actor_role,
                        transferred_at=now,
                    )
            except IntegrityError:
                raise Conflict(
                    f"Complaint {complaint.complaint_number} already has a pending transfer.",
                    code=ErrorCode.DUPLICATE_PENDING_TRANSFER,
                )

            complaint.append_transfer_history({
                "transfer_id": transfer.pk,
                "from_department": transfer.from_department_id,
                "from_sub_department": transfer.from_sub_department_id,
                "to_department": transfer.to_department_id,
                "to_sub_department": transfer.to_sub_department_id,
                "transfer_type": transfer.transfer_type,
                "transfer_reason": transfer.transfer_reason,
                "transfer_notes": transfer.transfer_notes,
                "initiated_by": actor.pk,
                "initiated_by_role": actor_role,
                "status": TransferStatus.PENDING,
                "transferred_at": now.isoformat(),
            })
            complaint.transfer_count += 1
            complaint.last_transferred_at = now
            complaint.save(update_fields=[
                "transfer_history", "transfer_count", "last_transferred_at", "updated_at",
            ])

            self.audit_sink.record(AuditEvent(
                action=AuditAction.COMPLAINT_TRANSFER_INITIATED,
                actor=actor,
                entity_type="ComplaintTransfer",
                entity_id=transfer.pk,
                details=TransferInitiatedDetails(
                    complaint_id=complaint.pk,
                    complaint_number=complaint.complaint_number,
                    from_department_id=transfer.from_department_id,
                    from_sub_department_id=transfer.from_sub_department_id,
                    to_department_id=transfer.to_department_id,
                    to_sub_department_id=transfer.to_sub_department_id,
                    transfer_type=transfer.transfer_type,
                    transfer_reason=transfer.transfer_reason,
                    connection_id=connection.pk if connection else None,
                    connection_created=connection_created,
                ),
            ))

        logger.info(
            "Transfer #%d of complaint %s to %s initiated by user=%s",
            transfer.pk, complaint.complaint_number, destination.describe(), actor.pk,
        )
        return InitiatedTransfer(transfer, connection, connection_created)

    # ── Accept / Reject ─────────────────────────────────────────────

    def accept_transfer(self, actor: Any, transfer_id: Any) -> ComplaintTransfer:
        """
        Accept a pending transfer into the target unit.

        The complaint adopts the transfer's destination (a department-level
        transfer leaves the sub-department empty), loses its assigned
        officer, and its history entry for this transfer is marked
        ``ACCEPTED``.

        Raises
        ------
        NotFound
            ``TRANSFER_NOT_FOUND``.
        InvalidTransition
            ``TRANSFER_NOT_PENDING`` (including a lost accept/reject race).
        PermissionDenied
            ``NOT_TARGET_SUBDEPARTMENT`` for officers outside the target unit.
        IntegrityViolation
            Destination became inactive since initiation.
        """
        require_authority(actor, RoleCode.OFFICER)

        with unit_of_work():
            transfer, complaint = self._lock_pending(actor, transfer_id, TransferStatus.ACCEPTED)

            raise_for_violations(
                self.validator.validate_destination(
                    transfer.to_department_id, transfer.to_sub_department_id,
                ),
                entity="ComplaintTransfer",
            )

            now = timezone.now()
            transfer.status = TransferStatus.ACCEPTED
            transfer.accepted_by = actor
            transfer.accepted_at = now
            transfer.save(update_fields=["status", "accepted_by", "accepted_at", "updated_at"])

            complaint.department_id = transfer.to_department_id
            complaint.sub_department_id = transfer.to_sub_department_id
            complaint.assigned_officer = None
            complaint.claimed_at = None
            self._mark_history(complaint, transfer, {
                "status": TransferStatus.ACCEPTED,
                "accepted_by": actor.pk,
                "accepted_at": now.isoformat(),
            })
            complaint.save(update_fields=[
                "department", "sub_department", "assigned_officer", "claimed_at",
                "transfer_history", "updated_at",
            ])

            self._audit_resolution(AuditAction.COMPLAINT_TRANSFER_ACCEPTED, actor, transfer, complaint)

        logger.info(
            "Transfer #%d of complaint %s accepted by user=%s",
            transfer.pk, complaint.complaint_number, actor.pk,
        )
        return transfer

    def reject_transfer(self, actor: Any, transfer_id: Any, rejection_reason: str) -> ComplaintTransfer:
        """
        Reject a pending transfer.  The complaint stays in its unit.

        ``rejection_reason`` needs at least ten characters once trimmed
        (``INVALID_REJECTION_REASON``) and is stored as supplied.
        """
        require_authority(actor, RoleCode.OFFICER)

        with unit_of_work():
            transfer, complaint = self._lock_pending(actor, transfer_id, TransferStatus.REJECTED)

            reason = rejection_reason or ""
            if len(reason.strip()) < REJECTION_REASON_MIN_LENGTH or len(reason) > REJECTION_REASON_MAX_LENGTH:
                raise IntegrityViolation(
                    f"Rejection reason must be between {REJECTION_REASON_MIN_LENGTH} and "
                    f"{REJECTION_REASON_MAX_LENGTH} characters.",
                    constraint=ErrorCode.INVALID_REJECTION_REASON,
                    entity="ComplaintTransfer",
                )

            now = timezone.now()
            transfer.status = TransferStatus.REJECTED
            transfer.rejected_by = actor
            transfer.rejected_at = now
            transfer.rejection_reason = reason
            transfer.save(update_fields=[
                "status", "rejected_by", "rejected_at", "rejection_reason", "updated_at",
            ])

            self._mark_history(complaint, transfer, {
                "status": TransferStatus.REJECTED,
                "rejected_by": actor.pk,
                "rejected_at": now.isoformat(),
                "rejection_reason": reason,
            })
            complaint.save(update_fields=["transfer_history", "updated_at"])

            self._audit_resolution(AuditAction.COMPLAINT_TRANSFER_REJECTED, actor, transfer, complaint)

        logger.info(
            "Transfer #%d of complaint %s rejected by user=%s",
            transfer.pk, complaint.complaint_number, actor.pk,
        )
        return transfer

    # ── Helpers ─────────────────────────────────────────────────────

    def _lock_pending(self, actor: Any, transfer_id: Any, target: str):
        """
        Lock the complaint, then the transfer, and check that the transfer
        is still pending and addressed to the actor's unit.
        """
        try:
            complaint_id = (
                ComplaintTransfer.objects
                .values_list("complaint_id", flat=True)
                .get(pk=transfer_id)
            )
        except (ComplaintTransfer.DoesNotExist, ValueError, TypeError):
            raise NotFound(
                f"Transfer with id {transfer_id} not found.",
                code=ErrorCode.TRANSFER_NOT_FOUND,
            )
        complaint = lock_for_update(Complaint, complaint_id, code=ErrorCode.COMPLAINT_NOT_FOUND)
        transfer = lock_for_update(ComplaintTransfer, transfer_id, code=ErrorCode.TRANSFER_NOT_FOUND)

        if transfer.status != TransferStatus.PENDING:
            raise InvalidTransition(
                code=ErrorCode.TRANSFER_NOT_PENDING,
                current=transfer.status,
                target=target,
                reason="Only pending transfers can be accepted or rejected",
            )
        self._check_target_unit(actor, transfer)
        return transfer, complaint

    @staticmethod
    def _check_target_unit(actor: Any, transfer: ComplaintTransfer) -> None:
        # Roles above Officer may resolve any transfer.
        if get_user_role_code(actor) != RoleCode.OFFICER:
            return
        if transfer.is_department_level:
            allowed = actor.assigned_department_id == transfer.to_department_id
        else:
            allowed = actor.assigned_sub_department_id == transfer.to_sub_department_id
        if not allowed:
            raise PermissionDenied(
                "Only officers of the target unit can resolve this transfer.",
                code=ErrorCode.NOT_TARGET_SUBDEPARTMENT,
            )

    @staticmethod
    def _mark_history(complaint: Complaint, transfer: ComplaintTransfer, changes: dict[str, Any]) -> None:
        if not complaint.update_history_entry(transfer.pk, **changes):
            logger.warning(
                "Complaint %s has no history entry for transfer #%d",
                complaint.complaint_number, transfer.pk,
            )

    def _audit_resolution(
        self,
        action: str,
        actor: Any,
        transfer: ComplaintTransfer,
        complaint: Complaint,
    ) -> None:
        self.audit_sink.record(AuditEvent(
            action=action,
            actor=actor,
            entity_type="ComplaintTransfer",
            entity_id=transfer.pk,
            details=TransferResolvedDetails(
                complaint_id=complaint.pk,
                complaint_number=complaint.complaint_number,
                outcome=transfer.status,
                to_department_id=transfer.to_department_id,
                to_sub_department_id=transfer.to_sub_department_id,
                rejection_reason=transfer.rejection_reason,
            ),
        ))


# ═══════════════════════════════════════════════════════════════════
#  Transfer Query Service
# ═══════════════════════════════════════════════════════════════════


class TransferQueryService:
    """Read-only transfer lookups.  No locks, no writes."""

    @staticmethod
    def pending_for_department(
        department_id: int,
        sub_department_id: int | None = None,
    ) -> QuerySet[ComplaintTransfer]:
        """Pending transfers addressed to a department (optionally one desk), newest first."""
        qs = (
            ComplaintTransfer.objects
            .pending()
            .filter(to_department_id=department_id)
            .select_related(
                "complaint", "from_department", "from_sub_department",
                "to_department", "to_sub_department",
            )
        )
        if sub_department_id is not None:
            qs = qs.filter(to_sub_department_id=sub_department_id)
        return qs.order_by("-transferred_at", "-id")

    @staticmethod
    def history_for_complaint(complaint_id: Any) -> QuerySet[ComplaintTransfer]:
        """Every transfer of a complaint, newest first."""
        if not Complaint.objects.filter(pk=complaint_id).exists():
            raise NotFound(
                f"Complaint with id {complaint_id} not found.",
                code=ErrorCode.COMPLAINT_NOT_FOUND,
            )
        return (
            ComplaintTransfer.objects
            .filter(complaint_id=complaint_id)
            .select_related(
                "from_department", "from_sub_department",
                "to_department", "to_sub_department",
            )
            .order_by("-transferred_at", "-id")
        )

    @staticmethod
    def statistics(
        department_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Count and mean processing time per outcome for transfers into or
        out of a department, optionally within ``[start, end]``.

        Example::

            {"total": 3,
             "by_status": {
                 "PENDING":  {"count": 1, "avg_processing_hours": None},
                 "ACCEPTED": {"count": 2, "avg_processing_hours": 5.25},
                 "REJECTED": {"count": 0, "avg_processing_hours": None}}}
        """
        qs = ComplaintTransfer.objects.filter(
            Q(from_department_id=department_id) | Q(to_department_id=department_id),
        )
        if start is not None:
            qs = qs.filter(transferred_at__gte=start)
        if end is not None:
            qs = qs.filter(transferred_at__lte=end)

        buckets: dict[str, list] = {status: [] for status in TransferStatus.values}
        for transfer in qs.only("status", "transferred_at", "accepted_at", "rejected_at"):
            buckets[transfer.status].append(transfer.processing_hours)

        by_status = {}
        for status, hours in buckets.items():
            measured = [h for h in hours if h is not None]
            by_status[status] = {
                "count": len(hours),
                "avg_processing_hours": sum(measured) / len(measured) if measured else None,
            }
        return {
            "total": sum(bucket["count"] for bucket in by_status.values()),
            "by_status": by_status,
        }
