"""
Integration tests — complaint transfer workflow (initiate / accept / reject).

Scenarios follow one complaint filed at PWD / ROADS with an assigned
officer.  Database-level backstops (partial unique index on pending
transfers) are reached by patching the service-level pre-check away.
"""

from __future__ import annotations

from unittest import mock

import pytest

from complaints.models import Complaint
from core.constants import ErrorCode
from core.domain.exceptions import (
    Conflict,
    DomainError,
    InsufficientAuthority,
    IntegrityViolation,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from core.domain.results import run_operation
from core.models import AuditAction, AuditLog
from transfers.models import (
    ComplaintTransfer,
    ComplaintTransferQuerySet,
    DepartmentConnection,
    TransferStatus,
    TransferType,
)
from transfers.services import TransferWorkflowService

pytestmark = pytest.mark.django_db


# ═══════════════════════════════════════════════════════════════════
#  Initiate
# ═══════════════════════════════════════════════════════════════════


class TestInitiateTransfer:
    def test_cross_department_transfer(self, org, officers, complaint, initiate):
        result = initiate(complaint, org.wsd, org.pipes, transfer_notes="Water main leak.")
        transfer = result.transfer

        assert transfer.status == TransferStatus.PENDING
        assert transfer.transfer_type == TransferType.DEPARTMENT
        assert (transfer.from_department, transfer.from_sub_department) == (org.pwd, org.roads)
        assert (transfer.to_department, transfer.to_sub_department) == (org.wsd, org.pipes)
        assert transfer.initiated_by == officers.roads
        assert transfer.initiated_by_role == "OFFICER"

        complaint.refresh_from_db()
        # The complaint does not move until the transfer is accepted.
        assert (complaint.department, complaint.sub_department) == (org.pwd, org.roads)
        assert complaint.transfer_count == 1
        assert complaint.last_transferred_at == transfer.transferred_at
        entry = complaint.find_history_entry(transfer.pk)
        assert entry["status"] == TransferStatus.PENDING
        assert entry["to_sub_department"] == org.pipes.pk
        assert entry["transfer_notes"] == "Water main leak."

        assert result.connection_created is True
        assert result.connection.transfer_count == 1
        assert result.connection.last_transfer_at == transfer.transferred_at

        audit = AuditLog.objects.get(action=AuditAction.COMPLAINT_TRANSFER_INITIATED)
        assert audit.entity_id == str(transfer.pk)
        assert audit.details["complaint_number"] == complaint.complaint_number
        assert audit.details["connection_id"] == result.connection.pk
        assert audit.details["connection_created"] is True

    def test_within_department_skips_connection(self, org, complaint, initiate):
        result = initiate(complaint, org.pwd, org.drain)
        assert result.transfer.transfer_type == TransferType.SUB_DEPARTMENT
        assert result.connection is None
        assert not DepartmentConnection.objects.exists()

    def test_explicit_transfer_type_is_kept(self, org, complaint, initiate):
        result = initiate(complaint, org.wsd, org.pipes, transfer_type=TransferType.ESCALATION)
        assert result.transfer.transfer_type == TransferType.ESCALATION

    def test_second_transfer_reuses_connection(self, org, officers, complaint, initiate, workflow):
        first = initiate(complaint, org.wsd, org.pipes)
        workflow.reject_transfer(officers.pipes, first.transfer.pk, "Not a water supply issue.")

        second = initiate(complaint, org.wsd, org.pipes)
        assert second.connection_created is False
        assert second.connection.pk == first.connection.pk
        assert second.connection.transfer_count == 2
        assert DepartmentConnection.objects.count() == 1

    def test_deactivated_connection_is_reactivated(self, org, complaint, initiate):
        low, high = DepartmentConnection.normalise_pair(org.pwd.pk, org.wsd.pk)
        existing = DepartmentConnection.objects.create(
            department_a_id=low, department_b_id=high, is_active=False,
        )
        result = initiate(complaint, org.wsd, org.pipes)
        existing.refresh_from_db()
        assert result.connection.pk == existing.pk
        assert existing.is_active is True
        assert existing.transfer_count == 1

    def test_duplicate_pending_transfer(self, org, officers, complaint, initiate):
        initiate(complaint, org.wsd, org.pipes)
        with pytest.raises(Conflict) as exc_info:
            initiate(complaint, org.pwd, org.drain, actor=officers.drain)
        assert exc_info.value.code == ErrorCode.DUPLICATE_PENDING_TRANSFER
        assert ComplaintTransfer.objects.count() == 1

    def test_unique_index_backstops_duplicate_check(self, org, admin_user, complaint, initiate):
        initiate(complaint, org.wsd, org.pipes)
        with mock.patch.object(
            ComplaintTransferQuerySet, "pending_for_complaint",
            lambda self, complaint_id: self.none(),
        ):
            with pytest.raises(Conflict) as exc_info:
                initiate(complaint, org.pwd, org.drain, actor=admin_user)
        assert exc_info.value.code == ErrorCode.DUPLICATE_PENDING_TRANSFER
        assert ComplaintTransfer.objects.count() == 1
        complaint.refresh_from_db()
        assert complaint.transfer_count == 1
        assert DepartmentConnection.objects.get().transfer_count == 1

    def test_transfer_already_sent_from_actor_sub_department(self, org, complaint, initiate):
        initiate(complaint, org.wsd, org.pipes)
        real = ComplaintTransferQuerySet.pending_for_complaint
        calls = []

        def first_lookup_misses(self, complaint_id):
            calls.append(complaint_id)
            return self.none() if len(calls) == 1 else real(self, complaint_id)

        with mock.patch.object(ComplaintTransferQuerySet, "pending_for_complaint", first_lookup_misses):
            with pytest.raises(Conflict) as exc_info:
                initiate(complaint, org.pwd, org.drain)
        assert exc_info.value.code == ErrorCode.TRANSFER_ALREADY_SENT

    def test_same_unit_is_rejected(self, org, complaint, initiate):
        with pytest.raises(Conflict) as exc_info:
            initiate(complaint, org.pwd, org.roads)
        assert exc_info.value.code == ErrorCode.SAME_DEPARTMENT_SUBDEPARTMENT_TRANSFER

    def test_department_level_into_own_department_is_rejected(self, org, complaint, initiate):
        with pytest.raises(Conflict) as exc_info:
            initiate(complaint, org.pwd)
        assert exc_info.value.code == ErrorCode.SAME_DEPARTMENT_SUBDEPARTMENT_TRANSFER

    def test_stale_declared_source(self, org, complaint, initiate):
        with pytest.raises(Conflict) as exc_info:
            initiate(
                complaint, org.wsd, org.pipes,
                from_department=org.pwd.pk, from_sub_department=org.drain.pk,
            )
        assert exc_info.value.code == ErrorCode.STALE_SOURCE_ASSIGNMENT

    def test_sub_department_mismatch(self, org, complaint, initiate):
        with pytest.raises(IntegrityViolation) as exc_info:
            initiate(complaint, org.wsd, org.drain)
        assert exc_info.value.code == ErrorCode.SUBDEPARTMENT_MISMATCH

    def test_inactive_destination(self, org, complaint, initiate):
        org.wsd.is_active = False
        org.wsd.save()
        with pytest.raises(IntegrityViolation) as exc_info:
            initiate(complaint, org.wsd, org.pipes)
        assert exc_info.value.code == ErrorCode.INACTIVE_DEPARTMENT

    def test_unknown_complaint(self, org, officers, workflow):
        with pytest.raises(NotFound) as exc_info:
            workflow.initiate_transfer(officers.roads, 999_999, {
                "to_department": org.wsd.pk, "transfer_reason": "OTHER",
            })
        assert exc_info.value.code == ErrorCode.COMPLAINT_NOT_FOUND

    def test_citizen_cannot_initiate(self, org, citizen, complaint, initiate):
        with pytest.raises(InsufficientAuthority):
            initiate(complaint, org.wsd, org.pipes, actor=citizen)

    def test_malformed_payload(self, org, complaint, initiate):
        with pytest.raises(DomainError) as exc_info:
            initiate(complaint, org.wsd, org.pipes, transfer_reason="BORED")
        assert exc_info.value.code == ErrorCode.INVALID_REQUEST
        assert "transfer_reason" in exc_info.value.details["fields"]

    def test_audit_failure_rolls_back_everything(self, org, officers, complaint, failing_sink):
        workflow = TransferWorkflowService(audit_sink=failing_sink)
        with pytest.raises(RuntimeError):
            workflow.initiate_transfer(officers.roads, complaint.pk, {
                "to_department": org.wsd.pk,
                "to_sub_department": org.pipes.pk,
                "transfer_reason": "WRONG_DEPARTMENT",
            })
        assert not ComplaintTransfer.objects.exists()
        assert not DepartmentConnection.objects.exists()
        complaint.refresh_from_db()
        assert complaint.transfer_history == []
        assert complaint.transfer_count == 0


# ═══════════════════════════════════════════════════════════════════
#  Accept
# ═══════════════════════════════════════════════════════════════════


class TestAcceptTransfer:
    def test_accept_moves_complaint(self, org, officers, complaint, initiate, workflow):
        transfer = initiate(complaint, org.wsd, org.pipes).transfer

        accepted = workflow.accept_transfer(officers.pipes, transfer.pk)

        assert accepted.status == TransferStatus.ACCEPTED
        assert accepted.accepted_by == officers.pipes
        assert accepted.accepted_at is not None
        complaint.refresh_from_db()
        assert (complaint.department, complaint.sub_department) == (org.wsd, org.pipes)
        assert complaint.assigned_officer_id is None
        assert complaint.claimed_at is None
        entry = complaint.find_history_entry(transfer.pk)
        assert entry["status"] == TransferStatus.ACCEPTED
        assert entry["accepted_by"] == officers.pipes.pk

        audit = AuditLog.objects.get(action=AuditAction.COMPLAINT_TRANSFER_ACCEPTED)
        assert audit.details["outcome"] == TransferStatus.ACCEPTED
        assert audit.actor_id == officers.pipes.pk

    def test_department_level_accept(self, org, officers, complaint, initiate, workflow):
        transfer = initiate(complaint, org.wsd).transfer
        assert transfer.is_department_level

        workflow.accept_transfer(officers.pipes, transfer.pk)

        complaint.refresh_from_db()
        assert complaint.department == org.wsd
        assert complaint.sub_department is None

    def test_officer_outside_target_unit(self, org, officers, complaint, initiate, workflow):
        transfer = initiate(complaint, org.pwd, org.drain).transfer
        with pytest.raises(PermissionDenied) as exc_info:
            workflow.accept_transfer(officers.pipes, transfer.pk)
        assert exc_info.value.code == ErrorCode.NOT_TARGET_SUBDEPARTMENT
        transfer.refresh_from_db()
        assert transfer.status == TransferStatus.PENDING

    def test_admin_may_resolve_any_transfer(self, org, admin_user, complaint, initiate, workflow):
        transfer = initiate(complaint, org.pwd, org.drain).transfer
        workflow.accept_transfer(admin_user, transfer.pk)
        complaint.refresh_from_db()
        assert complaint.sub_department == org.drain

    def test_accept_twice(self, org, officers, complaint, initiate, workflow):
        transfer = initiate(complaint, org.wsd, org.pipes).transfer
        workflow.accept_transfer(officers.pipes, transfer.pk)
        with pytest.raises(InvalidTransition) as exc_info:
            workflow.accept_transfer(officers.pipes, transfer.pk)
        assert exc_info.value.code == ErrorCode.TRANSFER_NOT_PENDING
        assert exc_info.value.current == TransferStatus.ACCEPTED

    def test_destination_deactivated_after_initiation(self, org, officers, complaint, initiate, workflow):
        transfer = initiate(complaint, org.wsd, org.pipes).transfer
        org.pipes.is_active = False
        org.pipes.save()
        with pytest.raises(IntegrityViolation) as exc_info:
            workflow.accept_transfer(officers.pipes, transfer.pk)
        assert exc_info.value.code == ErrorCode.INACTIVE_SUBDEPARTMENT
        complaint.refresh_from_db()
        assert complaint.department == org.pwd

    def test_unknown_transfer(self, officers, workflow):
        with pytest.raises(NotFound) as exc_info:
            workflow.accept_transfer(officers.pipes, 999_999)
        assert exc_info.value.code == ErrorCode.TRANSFER_NOT_FOUND

    def test_audit_failure_rolls_back(self, org, officers, complaint, initiate, failing_sink):
        transfer = initiate(complaint, org.wsd, org.pipes).transfer
        workflow = TransferWorkflowService(audit_sink=failing_sink)
        with pytest.raises(RuntimeError):
            workflow.accept_transfer(officers.pipes, transfer.pk)
        transfer.refresh_from_db()
        complaint.refresh_from_db()
        assert transfer.status == TransferStatus.PENDING
        assert complaint.sub_department == org.roads
        assert complaint.assigned_officer == officers.roads


# ═══════════════════════════════════════════════════════════════════
#  Reject
# ═══════════════════════════════════════════════════════════════════


class TestRejectTransfer:
    def test_short_reason_is_refused(self, org, officers, complaint, initiate, workflow):
        transfer = initiate(complaint, org.wsd, org.pipes).transfer
        with pytest.raises(IntegrityViolation) as exc_info:
            workflow.reject_transfer(officers.pipes, transfer.pk, "No.  ")
        assert exc_info.value.code == ErrorCode.INVALID_REJECTION_REASON
        transfer.refresh_from_db()
        assert transfer.status == TransferStatus.PENDING

    def test_reject_keeps_complaint_in_place(self, org, officers, complaint, initiate, workflow):
        transfer = initiate(complaint, org.wsd, org.pipes).transfer

        rejected = workflow.reject_transfer(officers.pipes, transfer.pk, " Not our area! ")

        assert rejected.status == TransferStatus.REJECTED
        assert rejected.rejection_reason == " Not our area! "
        rejected.refresh_from_db()
        assert rejected.rejection_reason == " Not our area! "
        assert rejected.rejected_by == officers.pipes
        complaint.refresh_from_db()
        assert (complaint.department, complaint.sub_department) == (org.pwd, org.roads)
        assert complaint.assigned_officer == officers.roads
        entry = complaint.find_history_entry(transfer.pk)
        assert entry["status"] == TransferStatus.REJECTED
        assert entry["rejection_reason"] == " Not our area! "

        audit = AuditLog.objects.get(action=AuditAction.COMPLAINT_TRANSFER_REJECTED)
        assert audit.details["rejection_reason"] == " Not our area! "

    def test_reject_after_accept(self, org, officers, complaint, initiate, workflow):
        transfer = initiate(complaint, org.wsd, org.pipes).transfer
        workflow.accept_transfer(officers.pipes, transfer.pk)
        with pytest.raises(InvalidTransition) as exc_info:
            workflow.reject_transfer(officers.pipes, transfer.pk, "Changed my mind here.")
        assert exc_info.value.code == ErrorCode.TRANSFER_NOT_PENDING

    def test_reject_frees_complaint_for_new_transfer(self, org, officers, complaint, initiate, workflow):
        transfer = initiate(complaint, org.wsd, org.pipes).transfer
        workflow.reject_transfer(officers.pipes, transfer.pk, "Belongs to drainage.")
        follow_up = initiate(complaint, org.pwd, org.drain)
        assert follow_up.transfer.status == TransferStatus.PENDING
        complaint.refresh_from_db()
        assert complaint.transfer_count == 2
        assert len(complaint.transfer_history) == 2

    def test_officer_outside_target_unit(self, org, officers, complaint, initiate, workflow):
        transfer = initiate(complaint, org.wsd, org.pipes).transfer
        with pytest.raises(PermissionDenied) as exc_info:
            workflow.reject_transfer(officers.drain, transfer.pk, "Not our problem at all.")
        assert exc_info.value.code == ErrorCode.NOT_TARGET_SUBDEPARTMENT

    def test_audit_failure_rolls_back(self, org, officers, complaint, initiate, failing_sink):
        transfer = initiate(complaint, org.wsd, org.pipes).transfer
        workflow = TransferWorkflowService(audit_sink=failing_sink)
        with pytest.raises(RuntimeError):
            workflow.reject_transfer(officers.pipes, transfer.pk, "Not a water supply issue.")
        transfer.refresh_from_db()
        assert transfer.status == TransferStatus.PENDING
        assert transfer.rejection_reason == ""


def test_run_operation_reports_error_code(org, officers, complaint, initiate, workflow):
    transfer = initiate(complaint, org.wsd, org.pipes).transfer
    result = run_operation(workflow.reject_transfer, officers.pipes, transfer.pk, "short")
    assert not result.ok
    assert result.code == ErrorCode.INVALID_REJECTION_REASON
    assert result.details["entity"] == "ComplaintTransfer"
    assert Complaint.objects.get(pk=complaint.pk).transfer_count == 1
