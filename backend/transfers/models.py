"""
Transfers app models.

``ComplaintTransfer`` is the canonical record of a proposed hand-off of a
complaint between organisational units (``PENDING`` → ``ACCEPTED`` |
``REJECTED``).  ``DepartmentConnection`` is the deduplicated, undirected
edge between two departments that have exchanged transfers or
communications.
"""

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.constants import REJECTION_REASON_MAX_LENGTH, TRANSFER_NOTES_MAX_LENGTH
from core.models import TimeStampedModel


class TransferType(models.TextChoices):
    DEPARTMENT = "DEPARTMENT", "Department"
    SUB_DEPARTMENT = "SUB_DEPARTMENT", "Sub-Department"
    ESCALATION = "ESCALATION", "Escalation"


class TransferReason(models.TextChoices):
    CLARIFICATION = "CLARIFICATION", "Clarification"
    RE_VERIFICATION = "RE_VERIFICATION", "Re-verification"
    FURTHER_INVESTIGATION = "FURTHER_INVESTIGATION", "Further Investigation"
    SPECIALIZED_HANDLING = "SPECIALIZED_HANDLING", "Specialized Handling"
    WRONG_DEPARTMENT = "WRONG_DEPARTMENT", "Wrong Department"
    ESCALATION = "ESCALATION", "Escalation"
    OTHER = "OTHER", "Other"


class TransferStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    ACCEPTED = "ACCEPTED", "Accepted"
    REJECTED = "REJECTED", "Rejected"


class ComplaintTransferQuerySet(models.QuerySet):
    def pending(self):
        return self.filter(status=TransferStatus.PENDING)

    def pending_for_complaint(self, complaint_id):
        return self.pending().filter(complaint_id=complaint_id)

    def pending_outbound_from(self, complaint_id, sub_department_id):
        return self.pending_for_complaint(complaint_id).filter(
            from_sub_department_id=sub_department_id,
        )


class ComplaintTransfer(TimeStampedModel):
    """
    A proposed move of a complaint to another department / sub-department.

    ``from_*`` fields snapshot the complaint's unit at initiation.  An empty
    ``to_sub_department`` marks a department-level transfer.  The partial
    unique constraint guarantees at most one ``PENDING`` row per complaint
    even when two initiators race past the service-level check.
    """

    complaint = models.ForeignKey(
        "complaints.Complaint",
        on_delete=models.PROTECT,
        related_name="transfers",
        verbose_name="Complaint",
    )

    # ── Source snapshot ──────────────────────────────────────────────
    from_department = models.ForeignKey(
        "directory.Department",
        on_delete=models.PROTECT,
        related_name="outbound_transfers",
        verbose_name="From Department",
    )
    from_sub_department = models.ForeignKey(
        "directory.SubDepartment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="outbound_transfers",
        verbose_name="From Sub-Department",
    )

    # ── Destination ──────────────────────────────────────────────────
    to_department = models.ForeignKey(
        "directory.Department",
        on_delete=models.PROTECT,
        related_name="inbound_transfers",
        verbose_name="To Department",
    )
    to_sub_department = models.ForeignKey(
        "directory.SubDepartment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="inbound_transfers",
        verbose_name="To Sub-Department",
    )

    transfer_type = models.CharField(
        max_length=20,
        choices=TransferType.choices,
        verbose_name="Transfer Type",
    )
    transfer_reason = models.CharField(
        max_length=30,
        choices=TransferReason.choices,
        verbose_name="Transfer Reason",
    )
    transfer_notes = models.TextField(
        max_length=TRANSFER_NOTES_MAX_LENGTH,
        blank=True,
        default="",
        verbose_name="Transfer Notes",
    )

    # ── Initiator (no DB constraint: officers can be retired) ────────
    initiated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        related_name="+",
        verbose_name="Initiated By",
    )
    initiated_by_role = models.CharField(
        max_length=20,
        verbose_name="Initiator Role",
    )
    transferred_at = models.DateTimeField(
        db_index=True,
        verbose_name="Transferred At",
    )

    # ── Resolution ───────────────────────────────────────────────────
    status = models.CharField(
        max_length=10,
        choices=TransferStatus.choices,
        default=TransferStatus.PENDING,
        db_index=True,
        verbose_name="Status",
    )
    accepted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="Accepted By",
    )
    accepted_at = models.DateTimeField(null=True, blank=True, verbose_name="Accepted At")
    rejected_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="Rejected By",
    )
    rejected_at = models.DateTimeField(null=True, blank=True, verbose_name="Rejected At")
    rejection_reason = models.TextField(
        max_length=REJECTION_REASON_MAX_LENGTH,
        blank=True,
        default="",
        verbose_name="Rejection Reason",
    )

    objects = ComplaintTransferQuerySet.as_manager()

    class Meta:
        verbose_name = "Complaint Transfer"
        verbose_name_plural = "Complaint Transfers"
        ordering = ["-transferred_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["complaint"],
                condition=Q(status="PENDING"),
                name="uniq_pending_transfer_per_complaint",
            ),
        ]
        indexes = [
            models.Index(fields=["to_department", "status"], name="transfer_to_dept_status_idx"),
            models.Index(fields=["to_sub_department", "status"], name="transfer_to_sub_status_idx"),
            models.Index(fields=["from_department", "status"], name="transfer_from_dept_status_idx"),
        ]

    def __str__(self):
        return f"Transfer #{self.pk} of complaint {self.complaint_id} [{self.status}]"

    @property
    def is_department_level(self) -> bool:
        return self.to_sub_department_id is None

    @property
    def resolved_at(self):
        return self.accepted_at or self.rejected_at

    @property
    def processing_hours(self) -> float | None:
        """Hours between initiation and resolution; ``None`` while pending."""
        if self.resolved_at is None:
            return None
        return (self.resolved_at - self.transferred_at).total_seconds() / 3600


class ConnectionType(models.TextChoices):
    TRANSFER_ENABLED = "TRANSFER_ENABLED", "Transfer Enabled"
    COMMUNICATION_ENABLED = "COMMUNICATION_ENABLED", "Communication Enabled"
    BOTH = "BOTH", "Both"


class DepartmentConnection(TimeStampedModel):
    """
    Undirected edge between two departments.

    The pair is stored normalised (``department_a`` has the lower id) so
    the unique constraint covers the *unordered* pair and self-loops are
    rejected by the check constraint.  Connections are soft-deactivated,
    never deleted.
    """

    department_a = models.ForeignKey(
        "directory.Department",
        on_delete=models.PROTECT,
        related_name="+",
        verbose_name="Department A",
    )
    department_b = models.ForeignKey(
        "directory.Department",
        on_delete=models.PROTECT,
        related_name="+",
        verbose_name="Department B",
    )
    connection_type = models.CharField(
        max_length=25,
        choices=ConnectionType.choices,
        default=ConnectionType.BOTH,
        verbose_name="Connection Type",
    )
    established_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="Established By",
    )
    is_active = models.BooleanField(default=True, db_index=True, verbose_name="Active")

    # ── Statistics ───────────────────────────────────────────────────
    transfer_count = models.PositiveIntegerField(default=0, verbose_name="Transfer Count")
    last_transfer_at = models.DateTimeField(null=True, blank=True, verbose_name="Last Transfer At")
    communication_count = models.PositiveIntegerField(default=0, verbose_name="Communication Count")
    last_communication_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Last Communication At",
    )

    notes = models.TextField(
        max_length=TRANSFER_NOTES_MAX_LENGTH,
        blank=True,
        default="",
        verbose_name="Notes",
    )

    class Meta:
        verbose_name = "Department Connection"
        verbose_name_plural = "Department Connections"
        ordering = ["-transfer_count", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["department_a", "department_b"],
                name="uniq_department_connection_pair",
            ),
            models.CheckConstraint(
                condition=Q(department_a__lt=F("department_b")),
                name="department_connection_ordered_pair",
            ),
        ]

    def __str__(self):
        return f"Connection {self.department_a_id} <-> {self.department_b_id}"

    @staticmethod
    def normalise_pair(dept_a_id: int, dept_b_id: int) -> tuple[int, int]:
        return (dept_a_id, dept_b_id) if dept_a_id < dept_b_id else (dept_b_id, dept_a_id)

    @property
    def transfer_enabled(self) -> bool:
        return self.connection_type in (ConnectionType.TRANSFER_ENABLED, ConnectionType.BOTH)

    @property
    def communication_enabled(self) -> bool:
        return self.connection_type in (ConnectionType.COMMUNICATION_ENABLED, ConnectionType.BOTH)

    def other_department_id(self, department_id: int) -> int:
        return self.department_b_id if self.department_a_id == department_id else self.department_a_id
