"""
Integration tests — consistency audit and cleanup.

Drift is produced the way it happens in production: officers retired
while complaints still point at them, departments deactivated under
active sub-departments, and assignments edited behind the services'
back.
"""

from __future__ import annotations

from io import StringIO

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError

from accounts.services import OfficerLifecycleService
from complaints.models import Complaint
from core.domain.exceptions import InsufficientAuthority
from core.models import AuditAction, AuditLog
from integrity.services import ConsistencyAuditor, Severity

pytestmark = pytest.mark.django_db

User = get_user_model()


@pytest.fixture()
def auditor():
    return ConsistencyAuditor()


@pytest.fixture()
def drifted(org, create_officer, create_complaint):
    """One example of every finding type."""
    incomplete = create_officer(org.roads)
    User.objects.filter(pk=incomplete.pk).update(assigned_sub_department=None)

    mismatched = create_officer(org.roads)
    User.objects.filter(pk=mismatched.pk).update(assigned_department=org.wsd)

    org.wsd.is_active = False
    org.wsd.save()

    inactive = create_officer(org.drain, is_active=False)
    complaint = create_complaint(org.pwd, org.drain, assigned_officer=inactive)
    return {
        "incomplete": incomplete,
        "mismatched": mismatched,
        "inactive": inactive,
        "complaint": complaint,
    }


class TestAudit:
    def test_clean_data(self, org, create_officer, auditor):
        create_officer(org.roads)
        report = auditor.audit_data_consistency()
        assert report.is_consistent
        assert report.recommendations == []
        assert report.statistics == {
            "total_officers": 1,
            "active_officers": 1,
            "total_departments": 2,
            "total_sub_departments": 3,
            "total_complaints": 0,
            "pending_transfers": 0,
        }

    def test_findings(self, org, drifted, auditor):
        report = auditor.audit_data_consistency()

        assert [f.type for f in report.findings] == [
            "INCOMPLETE_OFFICER_ASSIGNMENTS",
            "MISMATCHED_OFFICER_ASSIGNMENTS",
            "ORPHANED_SUBDEPARTMENTS",
            "DANGLING_COMPLAINT_ASSIGNMENTS",
        ]
        assert len(report.recommendations) == 4
        assert {f.severity for f in report.findings} == {Severity.HIGH, Severity.MEDIUM}
        assert report.finding("INCOMPLETE_OFFICER_ASSIGNMENTS").record_ids == [drifted["incomplete"].pk]
        assert report.finding("INCOMPLETE_OFFICER_ASSIGNMENTS").severity == Severity.HIGH
        assert report.finding("MISMATCHED_OFFICER_ASSIGNMENTS").record_ids == [drifted["mismatched"].pk]
        assert report.finding("ORPHANED_SUBDEPARTMENTS").record_ids == [org.pipes.pk]
        assert report.finding("DANGLING_COMPLAINT_ASSIGNMENTS").record_ids == [drifted["complaint"].pk]
        assert report.statistics["total_departments"] == 1
        assert report.statistics["active_officers"] == 2

    def test_audit_makes_no_writes(self, drifted, auditor):
        auditor.audit_data_consistency()
        assert not AuditLog.objects.exists()
        assert Complaint.objects.get(pk=drifted["complaint"].pk).assigned_officer_id == drifted["inactive"].pk


class TestCleanup:
    def test_cleanup_repairs_every_finding(self, org, drifted, auditor, super_admin):
        result = auditor.cleanup_orphaned_records(super_admin)

        assert result.orphaned_sub_departments == 1
        assert result.incomplete_officers == 1
        assert result.mismatched_officers == 1
        # The complaint of the inactive officer.
        assert result.dangling_complaints == 1
        assert result.total == 4

        org.pipes.refresh_from_db()
        assert org.pipes.is_active is False
        for key in ("incomplete", "mismatched"):
            officer = User.objects.get(pk=drifted[key].pk)
            assert officer.is_active is False
            assert officer.assigned_department_id is None
            assert officer.assigned_sub_department_id is None
        assert Complaint.objects.get(pk=drifted["complaint"].pk).assigned_officer_id is None

        audit = AuditLog.objects.get(action=AuditAction.DATA_CLEANUP)
        assert audit.entity_type == "System"
        assert audit.actor_id == super_admin.pk
        assert audit.details == {
            "orphaned_sub_departments": 1,
            "incomplete_officers": 1,
            "mismatched_officers": 1,
            "dangling_complaints": 1,
        }

        assert auditor.audit_data_consistency().is_consistent

    def test_retired_officer_complaints_are_unassigned(
        self, org, create_officer, create_complaint, auditor, super_admin,
    ):
        officer = create_officer(org.roads)
        complaints = [
            create_complaint(org.pwd, org.roads, assigned_officer=officer) for _ in range(3)
        ]
        OfficerLifecycleService().retire_officer(super_admin, officer.pk)

        finding = auditor.audit_data_consistency().finding("DANGLING_COMPLAINT_ASSIGNMENTS")
        assert finding.count == 3

        result = auditor.cleanup_orphaned_records()

        assert result.dangling_complaints == 3
        assert not Complaint.objects.filter(
            pk__in=[c.pk for c in complaints], assigned_officer_id__isnull=False,
        ).exists()
        audit = AuditLog.objects.get(action=AuditAction.DATA_CLEANUP)
        assert audit.actor_id is None
        assert audit.details["dangling_complaints"] == 3

    def test_cleanup_on_consistent_data(self, org, auditor):
        result = auditor.cleanup_orphaned_records()
        assert result.total == 0
        assert AuditLog.objects.filter(action=AuditAction.DATA_CLEANUP).count() == 1

    def test_requires_super_admin(self, drifted, auditor, admin_user):
        with pytest.raises(InsufficientAuthority):
            auditor.cleanup_orphaned_records(admin_user)
        assert Complaint.objects.get(pk=drifted["complaint"].pk).assigned_officer_id is not None

    def test_audit_failure_rolls_back_repairs(self, org, drifted, failing_sink):
        with pytest.raises(RuntimeError):
            ConsistencyAuditor(audit_sink=failing_sink).cleanup_orphaned_records()
        org.pipes.refresh_from_db()
        assert org.pipes.is_active is True
        assert User.objects.get(pk=drifted["mismatched"].pk).is_active is True
        assert Complaint.objects.get(pk=drifted["complaint"].pk).assigned_officer_id == drifted["inactive"].pk


class TestAuditConsistencyCommand:
    def test_clean_run(self, org):
        out = StringIO()
        call_command("audit_consistency", stdout=out)
        assert "No consistency issues found" in out.getvalue()

    def test_findings_fail_the_command(self, drifted):
        out = StringIO()
        with pytest.raises(CommandError, match="4 consistency issue type"):
            call_command("audit_consistency", stdout=out)
        assert "DANGLING_COMPLAINT_ASSIGNMENTS" in out.getvalue()
        assert not AuditLog.objects.exists()

    def test_repair(self, drifted):
        out = StringIO()
        call_command("audit_consistency", "--repair", stdout=out)
        output = out.getvalue()
        assert "Repaired 4 record(s)" in output
        assert "No consistency issues found" in output
        assert AuditLog.objects.filter(action=AuditAction.DATA_CLEANUP).count() == 1
