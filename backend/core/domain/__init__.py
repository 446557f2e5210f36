"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions     Closed error taxonomy; every error carries a stable code.
validation     ``Violation`` / ``ValidationResult`` and ``raise_for_violations``.
transactions   ``unit_of_work`` + ``lock_for_update`` (bounded lock waits).
access         Role-code / hierarchy helpers and ``require_authority``.
audit          ``AuditSink`` protocol, typed event payloads, database sink.
results        ``OperationResult`` and ``run_operation``.

Usage from any app::

    from core.domain.exceptions import Conflict, NotFound
    from core.domain.transactions import lock_for_update, unit_of_work
    from core.domain.access import require_authority
    from core.domain.audit import AuditEvent, DatabaseAuditSink
"""
