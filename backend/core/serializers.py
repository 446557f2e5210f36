"""
Core app serializers.

Shared helpers for validating service command payloads with Django REST
framework serializers.  Each app declares its own *request* serializers
(``accounts.serializers``, ``transfers.serializers``); services pass the
raw payload through ``validate_payload`` so that a malformed command is
rejected before any unit of work opens.

Architectural note
------------------
Serializer ``ValidationError`` is a DRF exception; the service layer only
speaks ``core.domain.exceptions``.  ``validate_payload`` is the single
place where one is translated into the other.
"""

from __future__ import annotations

from typing import Any

from rest_framework import serializers

from core.constants import ErrorCode
from core.domain.exceptions import DomainError


def validate_payload(
    serializer_class: type[serializers.Serializer],
    data: Any,
) -> dict[str, Any]:
    """
    Run ``serializer_class`` over ``data`` and return ``validated_data``.

    Raises:
        DomainError: ``INVALID_REQUEST`` with the DRF field-error map in
            ``details["fields"]``.
    """
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise DomainError(
            "Request payload is invalid.",
            code=ErrorCode.INVALID_REQUEST,
            details={"fields": _plain_errors(serializer.errors)},
        )
    return dict(serializer.validated_data)


def _plain_errors(errors: Any) -> Any:
    # ErrorDetail → str so the details stay JSON-serialisable.
    if isinstance(errors, dict):
        return {key: _plain_errors(value) for key, value in errors.items()}
    if isinstance(errors, list):
        return [_plain_errors(value) for value in errors]
    return str(errors)


class PrimaryKeyField(serializers.IntegerField):
    """Positive integer id (referenced row is resolved by the service)."""

    def __init__(self, **kwargs):
        kwargs.setdefault("min_value", 1)
        super().__init__(**kwargs)
