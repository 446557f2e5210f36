"""
Accounts app serializers.

Request serializers for the officer lifecycle commands.  Serializers
handle field definitions and basic shape validation.  **No business
logic** lives here: whether the department exists, is active, or owns
the sub-department is decided by the integrity validator inside the
service's unit of work.
"""

from __future__ import annotations

from rest_framework import serializers

from core.constants import TRANSFER_NOTES_MAX_LENGTH
from core.serializers import PrimaryKeyField


class OfficerCreateSerializer(serializers.Serializer):
    """
    Validates ``createOfficer`` payloads.

    Example::

        {"full_name": "Asha Rao", "department": 3, "sub_department": 7,
         "email": "asha@example.gov", "phone_number": "9876543210"}
    """

    full_name = serializers.CharField(max_length=150)
    department = PrimaryKeyField()
    sub_department = PrimaryKeyField()
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    phone_number = serializers.RegexField(
        r"^\+?\d{7,15}$",
        required=False,
        allow_blank=True,
        default="",
    )


class OfficerTransferSerializer(serializers.Serializer):
    """
    Validates ``transferOfficer`` payloads.  ``from_*`` is optional; when
    present it must match the officer's stored assignment.
    """

    to_department = PrimaryKeyField()
    to_sub_department = PrimaryKeyField()
    reason = serializers.CharField(max_length=TRANSFER_NOTES_MAX_LENGTH)
    from_department = PrimaryKeyField(required=False, allow_null=True, default=None)
    from_sub_department = PrimaryKeyField(required=False, allow_null=True, default=None)
