"""
core.domain.transactions — Helpers for safe multi-record mutations.

Provides utilities that wrap ``transaction.atomic`` and
``select_for_update`` into reusable patterns so that every app's
service layer follows the same concurrency-safe approach.

Design goals
------------
* Every mutating service entry point runs inside exactly one
  ``unit_of_work()``: either all of its writes (entity, history, counters,
  audit row) commit or none do.
* State-transition reads always lock the row first (``lock_for_update``)
  so that check-then-act invariants are re-verified under the lock.
* Lock waits are bounded.  On PostgreSQL the configured
  ``GRIEVANCE_LOCK_TIMEOUT_MS`` is applied with ``SET LOCAL lock_timeout``;
  a timeout, serialization failure or deadlock surfaces as
  ``TransientStoreFailure`` instead of a raw driver error.

Usage::

    from core.domain.transactions import lock_for_update, unit_of_work

    with unit_of_work():
        transfer = lock_for_update(
            ComplaintTransfer, transfer_id, code=ErrorCode.TRANSFER_NOT_FOUND,
        )
        ...
"""

from __future__ import annotations

import contextlib
import logging
from typing import Any, Iterator, TypeVar

from django.conf import settings
from django.db import OperationalError, connection, models, transaction

from core.domain.exceptions import NotFound, TransientStoreFailure

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=models.Model)


def _apply_lock_timeout() -> None:
    if connection.vendor != "postgresql":
        return
    timeout_ms = int(getattr(settings, "GRIEVANCE_LOCK_TIMEOUT_MS", 5000))
    with connection.cursor() as cursor:
        cursor.execute("SET LOCAL lock_timeout = %s", [f"{timeout_ms}ms"])


@contextlib.contextmanager
def unit_of_work() -> Iterator[None]:
    """
    Open one atomic unit of work.

    Nested use joins the outer transaction (Django savepoint semantics),
    so a service may call another service's mutating method and still
    commit once.  Driver-level ``OperationalError`` is translated into
    ``TransientStoreFailure`` after the transaction has rolled back.

    Raises:
        TransientStoreFailure: On lock timeout / write conflict.
    """
    try:
        with transaction.atomic():
            _apply_lock_timeout()
            yield
    except OperationalError as exc:
        logger.warning("Unit of work aborted by the store: %s", exc)
        raise TransientStoreFailure(details={"store_error": str(exc)}) from exc


def lock_for_update(
    model_class: type[M],
    pk: Any,
    *,
    code: str | None = None,
    select_related: tuple[str, ...] = (),
) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside ``unit_of_work()``.  Related rows named in
    ``select_related`` are joined but only the base table is locked
    (``of=("self",)``).

    Args:
        model_class:    The Django model class.
        pk:             Primary key value.
        code:           Error code for the ``NotFound`` raised on a miss.
        select_related: Relations to join in the same query.

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists.
    """
    qs = model_class.objects.all()
    if select_related:
        qs = qs.select_related(*select_related).select_for_update(of=("self",))
    else:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=pk)
    except (model_class.DoesNotExist, ValueError, TypeError):
        raise NotFound(
            f"{model_class._meta.verbose_name.title()} with id {pk} not found.",
            code=code,
        )
