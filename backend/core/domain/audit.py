"""
core.domain.audit — Audit-trail capability used by every mutating service.

Centralises audit recording so every app uses one consistent entry-point
rather than constructing ``AuditLog`` rows directly.

Design decisions
------------------
* **Same transaction as the mutation.**  ``DatabaseAuditSink.record``
  writes in the caller's open ``unit_of_work()``: if the audit write
  fails, the mutation rolls back with it, and vice versa.
* **Injectable.**  Services receive an ``AuditSink`` through their
  constructor.  Anything with a ``record(event)`` method qualifies, so
  tests can pass a recording or deliberately failing sink.
* **Closed payloads.**  Each action has its own frozen details dataclass
  with a fixed field set instead of an open dict.

Usage::

    from core.domain.audit import AuditEvent, OfficerTransferredDetails

    self.audit_sink.record(AuditEvent(
        action=AuditAction.OFFICER_TRANSFER,
        actor=actor,
        entity_type="Officer",
        entity_id=officer.pk,
        details=OfficerTransferredDetails(...),
    ))
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, Union

from core.domain.access import get_user_role_code

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import AuditLog

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Details payloads (one per action family)
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class OfficerCreatedDetails:
    officer_code: str
    officer_name: str
    department_id: int
    department_code: str
    sub_department_id: int
    sub_department_code: str


@dataclass(frozen=True)
class OfficerTransferredDetails:
    officer_code: str
    from_department_id: int | None
    from_sub_department_id: int | None
    to_department_id: int
    to_sub_department_id: int
    reason: str


@dataclass(frozen=True)
class OfficerRetiredDetails:
    officer_code: str
    officer_name: str
    email: str
    phone_number: str
    last_department_id: int | None
    last_sub_department_id: int | None
    transfer_history: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class TransferInitiatedDetails:
    complaint_id: int
    complaint_number: str
    from_department_id: int
    from_sub_department_id: int | None
    to_department_id: int
    to_sub_department_id: int | None
    transfer_type: str
    transfer_reason: str
    connection_id: int | None
    connection_created: bool


@dataclass(frozen=True)
class TransferResolvedDetails:
    complaint_id: int
    complaint_number: str
    outcome: str
    to_department_id: int
    to_sub_department_id: int | None
    rejection_reason: str = ""


@dataclass(frozen=True)
class ConnectionChangedDetails:
    department_a_id: int
    department_b_id: int
    is_active: bool
    transfer_enabled: bool
    communication_enabled: bool


@dataclass(frozen=True)
class CleanupDetails:
    orphaned_sub_departments: int
    incomplete_officers: int
    mismatched_officers: int
    dangling_complaints: int


AuditDetails = Union[
    OfficerCreatedDetails,
    OfficerTransferredDetails,
    OfficerRetiredDetails,
    TransferInitiatedDetails,
    TransferResolvedDetails,
    ConnectionChangedDetails,
    CleanupDetails,
]


@dataclass(frozen=True)
class AuditEvent:
    action: str
    actor: User | None
    entity_type: str
    entity_id: Any
    details: AuditDetails

    def details_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self.details)


# ═══════════════════════════════════════════════════════════════════
#  Sinks
# ═══════════════════════════════════════════════════════════════════


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> Any: ...


class DatabaseAuditSink:
    """
    Persist events as ``AuditLog`` rows inside the caller's transaction.
    """

    def record(self, event: AuditEvent) -> AuditLog:
        from core.models import AuditLog

        entry = AuditLog.objects.create(
            action=event.action,
            actor_id=getattr(event.actor, "pk", None),
            actor_role=get_user_role_code(event.actor) or "",
            entity_type=event.entity_type,
            entity_id="" if event.entity_id is None else str(event.entity_id),
            details=event.details_dict(),
        )
        logger.debug(
            "Audit %s %s#%s by actor=%s",
            event.action, event.entity_type, event.entity_id,
            getattr(event.actor, "pk", None),
        )
        return entry
