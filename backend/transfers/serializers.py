"""
Transfers app serializers.

Request serializers for the transfer workflow and connection commands.
Shape validation only; existence, activity and ownership checks happen in
the services under lock.
"""

from __future__ import annotations

from rest_framework import serializers

from core.constants import TRANSFER_NOTES_MAX_LENGTH
from core.serializers import PrimaryKeyField

from .models import ConnectionType, TransferReason, TransferType


class InitiateTransferSerializer(serializers.Serializer):
    """
    Validates ``initiateTransfer`` payloads.

    Omitting ``to_sub_department`` makes the transfer department-level.
    ``transfer_type`` may be omitted; it is derived from the destination
    by the service.

    Example::

        {"to_department": 4, "to_sub_department": 9,
         "transfer_reason": "WRONG_DEPARTMENT", "transfer_notes": "Drainage, not roads."}
    """

    to_department = PrimaryKeyField()
    to_sub_department = PrimaryKeyField(required=False, allow_null=True, default=None)
    transfer_type = serializers.ChoiceField(
        choices=TransferType.choices,
        required=False,
        allow_null=True,
        default=None,
    )
    transfer_reason = serializers.ChoiceField(choices=TransferReason.choices)
    transfer_notes = serializers.CharField(
        max_length=TRANSFER_NOTES_MAX_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )
    from_department = PrimaryKeyField(required=False, allow_null=True, default=None)
    from_sub_department = PrimaryKeyField(required=False, allow_null=True, default=None)


class ConnectionCreateSerializer(serializers.Serializer):
    """Validates explicit ``establish_connection`` payloads."""

    department_a = PrimaryKeyField()
    department_b = PrimaryKeyField()
    connection_type = serializers.ChoiceField(
        choices=ConnectionType.choices,
        required=False,
        default=ConnectionType.BOTH,
    )
    notes = serializers.CharField(
        max_length=TRANSFER_NOTES_MAX_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )
