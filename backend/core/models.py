"""
Core app models.

Provides the abstract timestamp base model and the append-only
``AuditLog`` table written by ``core.domain.audit.DatabaseAuditSink``.
"""

from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """
    Abstract base model that provides self-updating ``created_at`` and
    ``updated_at`` timestamp fields for every concrete child model.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True


class AuditAction(models.TextChoices):
    OFFICER_CREATE = "OFFICER_CREATE", "Officer Created"
    OFFICER_TRANSFER = "OFFICER_TRANSFER", "Officer Transferred"
    OFFICER_RETIRE = "OFFICER_RETIRE", "Officer Retired"
    COMPLAINT_TRANSFER_INITIATED = "COMPLAINT_TRANSFER_INITIATED", "Complaint Transfer Initiated"
    COMPLAINT_TRANSFER_ACCEPTED = "COMPLAINT_TRANSFER_ACCEPTED", "Complaint Transfer Accepted"
    COMPLAINT_TRANSFER_REJECTED = "COMPLAINT_TRANSFER_REJECTED", "Complaint Transfer Rejected"
    CONNECTION_CREATE = "CONNECTION_CREATE", "Connection Created"
    CONNECTION_DEACTIVATE = "CONNECTION_DEACTIVATE", "Connection Deactivated"
    CONNECTION_REACTIVATE = "CONNECTION_REACTIVATE", "Connection Reactivated"
    DATA_CLEANUP = "DATA_CLEANUP", "Data Cleanup"


class AuditLog(models.Model):
    """
    Immutable record of a mutation performed by a core service.

    ``actor`` is stored without a database constraint and without any
    ``on_delete`` side effect: when an officer is retired (hard delete)
    the rows they authored keep the original actor id.  ``actor_role`` and
    the ``details`` snapshot make each row self-describing.
    """

    action = models.CharField(
        max_length=40,
        choices=AuditAction.choices,
        db_index=True,
        verbose_name="Action",
    )
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="Actor",
    )
    actor_role = models.CharField(
        max_length=20,
        blank=True,
        default="",
        verbose_name="Actor Role",
    )
    entity_type = models.CharField(
        max_length=50,
        verbose_name="Entity Type",
    )
    entity_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        verbose_name="Entity ID",
    )
    details = models.JSONField(
        default=dict,
        blank=True,
        verbose_name="Details",
    )
    timestamp = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Timestamp",
    )

    class Meta:
        verbose_name = "Audit Log Entry"
        verbose_name_plural = "Audit Log"
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="auditlog_entity_idx"),
        ]

    def __str__(self):
        return f"{self.action} {self.entity_type}#{self.entity_id}"
