"""
Complaints app models.

A ``Complaint`` is filed by a citizen against a department (and
optionally a sub-department desk).  The transfer workflow moves it between
units; every transfer leaves an entry in the complaint's embedded
``transfer_history`` list, keyed by the canonical transfer id.
"""

from __future__ import annotations

import re
from typing import Any

from django.conf import settings
from django.db import models
from django.db.models import Max
from django.utils import timezone

from core.constants import COMPLAINT_NUMBER_PREFIX, COMPLAINT_SEQUENCE_WIDTH
from core.models import TimeStampedModel


class ComplaintStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    IN_PROGRESS = "IN_PROGRESS", "In Progress"
    RESOLVED = "RESOLVED", "Resolved"
    REJECTED = "REJECTED", "Rejected"


class ComplaintPriority(models.TextChoices):
    LOW = "LOW", "Low"
    MEDIUM = "MEDIUM", "Medium"
    HIGH = "HIGH", "High"
    URGENT = "URGENT", "Urgent"


def generate_complaint_number(year: int | None = None) -> str:
    """
    Next ``SUV{YYYY}{NNNNNN}`` number for ``year`` (default: current year).

    The sequence continues from the greatest number already issued for
    that year; the unique constraint on ``complaint_number`` rejects a
    concurrent duplicate.
    """
    year = year or timezone.now().year
    prefix = f"{COMPLAINT_NUMBER_PREFIX}{year}"
    latest = (
        Complaint.objects
        .filter(complaint_number__startswith=prefix)
        .aggregate(latest=Max("complaint_number"))["latest"]
    )
    sequence = 1
    if latest:
        match = re.search(r"(\d+)$", latest[len(prefix):])
        if match:
            sequence = int(match.group(1)) + 1
    return f"{prefix}{sequence:0{COMPLAINT_SEQUENCE_WIDTH}d}"


class Complaint(TimeStampedModel):
    """
    Citizen complaint.

    ``department`` / ``sub_department`` always name the unit currently
    responsible.  ``sub_department`` is empty only after a department-level
    transfer was accepted (the complaint then waits in the department
    queue).

    ``assigned_officer`` is stored without a database constraint: a
    retired officer's id stays on the complaint until the consistency
    auditor's cleanup pass clears it.
    """

    complaint_number = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        verbose_name="Complaint Number",
    )
    citizen = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="complaints",
        verbose_name="Citizen",
    )
    title = models.CharField(max_length=200, verbose_name="Title")
    description = models.TextField(verbose_name="Description")
    category = models.CharField(
        max_length=50,
        blank=True,
        default="",
        verbose_name="Category",
    )
    priority = models.CharField(
        max_length=10,
        choices=ComplaintPriority.choices,
        default=ComplaintPriority.MEDIUM,
        verbose_name="Priority",
    )
    status = models.CharField(
        max_length=20,
        choices=ComplaintStatus.choices,
        default=ComplaintStatus.PENDING,
        db_index=True,
        verbose_name="Status",
    )

    # ── Current responsible unit ─────────────────────────────────────
    department = models.ForeignKey(
        "directory.Department",
        on_delete=models.PROTECT,
        related_name="complaints",
        verbose_name="Department",
    )
    sub_department = models.ForeignKey(
        "directory.SubDepartment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="complaints",
        verbose_name="Sub-Department",
    )
    assigned_officer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name="assigned_complaints",
        verbose_name="Assigned Officer",
    )
    claimed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Claimed At",
    )

    # ── Transfer bookkeeping ─────────────────────────────────────────
    transfer_history = models.JSONField(
        default=list,
        blank=True,
        verbose_name="Transfer History",
    )
    transfer_count = models.PositiveIntegerField(
        default=0,
        verbose_name="Transfer Count",
    )
    last_transferred_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Last Transferred At",
    )

    class Meta:
        verbose_name = "Complaint"
        verbose_name_plural = "Complaints"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["department", "sub_department", "status"], name="complaint_unit_status_idx"),
            models.Index(fields=["assigned_officer"], name="complaint_officer_idx"),
        ]

    def __str__(self):
        return f"{self.complaint_number}: {self.title}"

    def save(self, *args, **kwargs):
        if not self.complaint_number:
            self.complaint_number = generate_complaint_number()
        super().save(*args, **kwargs)

    # ── Embedded history helpers ─────────────────────────────────────

    def append_transfer_history(self, entry: dict[str, Any]) -> None:
        self.transfer_history = [*(self.transfer_history or []), entry]

    def find_history_entry(self, transfer_id: int) -> dict[str, Any] | None:
        for entry in self.transfer_history or []:
            if entry.get("transfer_id") == transfer_id:
                return entry
        return None

    def update_history_entry(self, transfer_id: int, **changes: Any) -> bool:
        """
        Merge ``changes`` into the history entry for ``transfer_id``.

        Returns ``False`` when no entry carries that id.
        """
        history = [dict(entry) for entry in self.transfer_history or []]
        for entry in history:
            if entry.get("transfer_id") == transfer_id:
                entry.update(changes)
                self.transfer_history = history
                return True
        return False
