"""
Consistency Auditor.

Batch reconciliation between the directory, officer and complaint tables.
It is deliberately *not* part of any request path: both passes scan whole
tables, so they run on demand (``manage.py audit_consistency``) or on a
schedule.  Between runs, drift left behind by officer retirement or by
directory edits stays visible, which is the accepted latency/consistency
trade-off.

Findings
--------
┌─────────────────────────────────┬──────────┬──────────────────────────────┐
│ Finding                         │ Severity │ Repair                       │
├─────────────────────────────────┼──────────┼──────────────────────────────┤
│ INCOMPLETE_OFFICER_ASSIGNMENTS  │ HIGH     │ strip + deactivate officer   │
│ MISMATCHED_OFFICER_ASSIGNMENTS  │ HIGH     │ strip + deactivate officer   │
│ ORPHANED_SUBDEPARTMENTS         │ MEDIUM   │ deactivate sub-department    │
│ DANGLING_COMPLAINT_ASSIGNMENTS  │ MEDIUM   │ unassign complaint           │
└─────────────────────────────────┴──────────┴──────────────────────────────┘
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from django.contrib.auth import get_user_model
from django.db.models import F, Q, QuerySet

from accounts.models import RoleCode
from complaints.models import Complaint
from core.domain.access import require_authority
from core.domain.audit import AuditEvent, AuditSink, CleanupDetails, DatabaseAuditSink
from core.domain.transactions import unit_of_work
from core.models import AuditAction
from directory.models import SubDepartment
from directory.services import OrmDirectoryStore
from transfers.models import ComplaintTransfer

logger = logging.getLogger(__name__)


class Severity:
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


@dataclass(frozen=True)
class Finding:
    type: str
    severity: str
    count: int
    description: str
    record_ids: list[Any] = field(default_factory=list)


@dataclass(frozen=True)
class ConsistencyReport:
    findings: list[Finding]
    statistics: dict[str, int]
    recommendations: list[str]

    @property
    def is_consistent(self) -> bool:
        return not self.findings

    def finding(self, finding_type: str) -> Finding | None:
        return next((f for f in self.findings if f.type == finding_type), None)


@dataclass(frozen=True)
class CleanupResult:
    orphaned_sub_departments: int = 0
    incomplete_officers: int = 0
    mismatched_officers: int = 0
    dangling_complaints: int = 0

    @property
    def total(self) -> int:
        return (
            self.orphaned_sub_departments + self.incomplete_officers
            + self.mismatched_officers + self.dangling_complaints
        )


# (type, severity, description, recommendation)
_CHECKS: list[tuple[str, str, str, str]] = [
    (
        "INCOMPLETE_OFFICER_ASSIGNMENTS", Severity.HIGH,
        "Active officers missing a department or sub-department assignment.",
        "Reassign or deactivate officers with incomplete assignments.",
    ),
    (
        "MISMATCHED_OFFICER_ASSIGNMENTS", Severity.HIGH,
        "Officers whose sub-department belongs to a different department.",
        "Correct the department of officers whose sub-department moved.",
    ),
    (
        "ORPHANED_SUBDEPARTMENTS", Severity.MEDIUM,
        "Active sub-departments whose department is inactive.",
        "Deactivate or re-parent sub-departments of inactive departments.",
    ),
    (
        "DANGLING_COMPLAINT_ASSIGNMENTS", Severity.MEDIUM,
        "Complaints assigned to officers that no longer exist or are inactive.",
        "Run the cleanup pass to return these complaints to their unit queue.",
    ),
]


class ConsistencyAuditor:
    """
    Read-only audit plus an all-or-nothing repair pass.
    """

    def __init__(
        self,
        directory: OrmDirectoryStore | None = None,
        audit_sink: AuditSink | None = None,
    ) -> None:
        self.directory = directory or OrmDirectoryStore()
        self.audit_sink = audit_sink or DatabaseAuditSink()

    # ── Finding querysets ───────────────────────────────────────────

    @staticmethod
    def _officers() -> QuerySet:
        return get_user_model().objects.filter(role__code=RoleCode.OFFICER)

    def incomplete_officers(self) -> QuerySet:
        return self._officers().filter(is_active=True).filter(
            Q(assigned_department__isnull=True) | Q(assigned_sub_department__isnull=True),
        )

    def mismatched_officers(self) -> QuerySet:
        return (
            self._officers()
            .filter(
                assigned_department__isnull=False,
                assigned_sub_department__isnull=False,
            )
            .exclude(assigned_sub_department__department_id=F("assigned_department_id"))
        )

    @staticmethod
    def orphaned_sub_departments() -> QuerySet:
        return SubDepartment.objects.filter(is_active=True, department__is_active=False)

    @staticmethod
    def dangling_complaints() -> QuerySet:
        active_users = get_user_model().objects.filter(is_active=True).values("pk")
        return (
            Complaint.objects
            .filter(assigned_officer_id__isnull=False)
            .exclude(assigned_officer_id__in=active_users)
        )

    def _finding_querysets(self) -> dict[str, QuerySet]:
        return {
            "INCOMPLETE_OFFICER_ASSIGNMENTS": self.incomplete_officers(),
            "MISMATCHED_OFFICER_ASSIGNMENTS": self.mismatched_officers(),
            "ORPHANED_SUBDEPARTMENTS": self.orphaned_sub_departments(),
            "DANGLING_COMPLAINT_ASSIGNMENTS": self.dangling_complaints(),
        }

    # ── Audit ───────────────────────────────────────────────────────

    def audit_data_consistency(self) -> ConsistencyReport:
        """
        Scan for drift and return findings, statistics and recommendations.

        Makes no writes.
        """
        querysets = self._finding_querysets()
        findings: list[Finding] = []
        recommendations: list[str] = []
        for finding_type, severity, description, recommendation in _CHECKS:
            ids = list(querysets[finding_type].order_by("pk").values_list("pk", flat=True))
            if ids:
                findings.append(Finding(finding_type, severity, len(ids), description, ids))
                recommendations.append(recommendation)

        officers = self._officers()
        statistics = {
            "total_officers": officers.count(),
            "active_officers": officers.filter(is_active=True).count(),
            "total_departments": self.directory.active_departments().count(),
            "total_sub_departments": self.directory.active_sub_departments().count(),
            "total_complaints": Complaint.objects.count(),
            "pending_transfers": ComplaintTransfer.objects.pending().count(),
        }

        if findings:
            logger.warning(
                "Consistency audit found %d issue type(s): %s",
                len(findings), ", ".join(f"{f.type}={f.count}" for f in findings),
            )
        else:
            logger.info("Consistency audit found no issues")
        return ConsistencyReport(findings, statistics, recommendations)

    # ── Cleanup ─────────────────────────────────────────────────────

    def cleanup_orphaned_records(self, actor: Any = None) -> CleanupResult:
        """
        Repair every finding in one transaction.

        * orphaned sub-departments → deactivated
        * officers with incomplete or mismatched assignments → assignment
          stripped, account deactivated
        * complaints pointing at missing / inactive officers → unassigned

        ``actor`` is ``None`` for scheduled runs; a human actor must be a
        Super Admin.  The ``DATA_CLEANUP`` audit row commits with the
        repairs or not at all.
        """
        if actor is not None:
            require_authority(actor, RoleCode.SUPER_ADMIN)

        with unit_of_work():
            orphaned = self.orphaned_sub_departments().update(is_active=False)
            incomplete = self.incomplete_officers().update(
                assigned_department=None,
                assigned_sub_department=None,
                is_active=False,
            )
            mismatched_ids = list(self.mismatched_officers().values_list("pk", flat=True))
            mismatched = get_user_model().objects.filter(pk__in=mismatched_ids).update(
                assigned_department=None,
                assigned_sub_department=None,
                is_active=False,
            )
            # After the officer pass so freshly deactivated officers are included.
            dangling = self.dangling_complaints().update(
                assigned_officer=None,
                claimed_at=None,
            )

            result = CleanupResult(
                orphaned_sub_departments=orphaned,
                incomplete_officers=incomplete,
                mismatched_officers=mismatched,
                dangling_complaints=dangling,
            )
            self.audit_sink.record(AuditEvent(
                action=AuditAction.DATA_CLEANUP,
                actor=actor,
                entity_type="System",
                entity_id=None,
                details=CleanupDetails(
                    orphaned_sub_departments=orphaned,
                    incomplete_officers=incomplete,
                    mismatched_officers=mismatched,
                    dangling_complaints=dangling,
                ),
            ))

        logger.info(
            "Cleanup fixed %d record(s): subdepartments=%d officers=%d+%d complaints=%d",
            result.total, orphaned, incomplete, mismatched, dangling,
        )
        return result
