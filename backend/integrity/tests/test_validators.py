"""
Unit tests — IntegrityValidator assignment, destination and transfer checks.
"""

from __future__ import annotations

import pytest

from core.constants import ErrorCode
from core.domain.exceptions import InsufficientAuthority, NotFound
from integrity.validators import IntegrityValidator, TransferRequest

pytestmark = pytest.mark.django_db


@pytest.fixture()
def validator():
    return IntegrityValidator()


def _request(actor, current, to_department, to_sub_department=None, **kwargs):
    department, sub_department = current
    return TransferRequest(
        actor=actor,
        minimum_role=kwargs.pop("minimum_role", "OFFICER"),
        current_department_id=department.pk,
        current_sub_department_id=sub_department.pk if sub_department else None,
        to_department_id=to_department.pk,
        to_sub_department_id=to_sub_department.pk if to_sub_department else None,
        **kwargs,
    )


class TestValidateAssignment:
    def test_valid_assignment(self, org, validator):
        result = validator.validate_assignment(None, org.pwd.pk, org.roads.pk)
        assert result.ok
        assert result.value.department == org.pwd
        assert result.value.sub_department == org.roads
        assert result.value.describe() == "Public Works / Roads"

    def test_every_failure_is_reported(self, org, validator):
        org.pwd.is_active = False
        org.pwd.save()
        org.pipes.is_active = False
        org.pipes.save()

        result = validator.validate_assignment(None, org.pwd.pk, org.pipes.pk)

        assert result.constraints() == [
            ErrorCode.INACTIVE_DEPARTMENT,
            ErrorCode.INACTIVE_SUBDEPARTMENT,
            ErrorCode.SUBDEPARTMENT_MISMATCH,
        ]

    def test_missing_sub_department_value(self, org, validator):
        result = validator.validate_assignment(None, org.pwd.pk, None)
        assert result.constraints() == [ErrorCode.INVALID_ASSIGNMENT]

    @pytest.mark.parametrize("which, code", [
        ("department", ErrorCode.DEPARTMENT_NOT_FOUND),
        ("sub_department", ErrorCode.SUBDEPARTMENT_NOT_FOUND),
    ])
    def test_missing_records(self, org, validator, which, code):
        department_id = 999_999 if which == "department" else org.pwd.pk
        sub_department_id = 999_999 if which == "sub_department" else org.roads.pk
        with pytest.raises(NotFound) as exc_info:
            validator.validate_assignment(None, department_id, sub_department_id)
        assert exc_info.value.code == code

    def test_officer_checks(self, org, validator, create_officer, citizen):
        officer = create_officer(org.roads)
        assert validator.validate_assignment(officer.pk, org.pwd.pk, org.roads.pk).value.officer == officer

        result = validator.validate_assignment(citizen.pk, org.pwd.pk, org.roads.pk)
        assert result.constraints() == [ErrorCode.INVALID_OFFICER_ROLE]

        officer.is_active = False
        officer.save()
        result = validator.validate_assignment(officer.pk, org.pwd.pk, org.roads.pk)
        assert result.constraints() == [ErrorCode.OFFICER_INACTIVE]

        with pytest.raises(NotFound) as exc_info:
            validator.validate_assignment(999_999, org.pwd.pk, org.roads.pk)
        assert exc_info.value.code == ErrorCode.OFFICER_NOT_FOUND


class TestValidateDestination:
    def test_department_only(self, org, validator):
        result = validator.validate_destination(org.wsd.pk)
        assert result.ok
        assert result.value.sub_department is None
        assert result.value.describe() == "Water Supply"

    def test_mismatch(self, org, validator):
        result = validator.validate_destination(org.wsd.pk, org.roads.pk)
        assert result.constraints() == [ErrorCode.SUBDEPARTMENT_MISMATCH]


class TestValidateTransferConstraints:
    def test_valid_transfer(self, org, validator, admin_user):
        result = validator.validate_transfer_constraints(
            _request(admin_user, (org.pwd, org.roads), org.wsd, org.pipes),
        )
        assert result.ok
        assert result.value.sub_department == org.pipes

    def test_authority_is_checked_first(self, org, validator, citizen):
        with pytest.raises(InsufficientAuthority):
            validator.validate_transfer_constraints(
                _request(citizen, (org.pwd, org.roads), org.pwd, org.roads),
            )

    def test_same_unit(self, org, validator, admin_user):
        result = validator.validate_transfer_constraints(
            _request(admin_user, (org.pwd, org.roads), org.pwd, org.roads),
        )
        assert result.constraints() == [ErrorCode.SAME_DEPARTMENT_SUBDEPARTMENT_TRANSFER]

    def test_department_level_into_current_department(self, org, validator, admin_user):
        result = validator.validate_transfer_constraints(
            _request(admin_user, (org.pwd, org.roads), org.pwd),
        )
        assert result.constraints() == [ErrorCode.SAME_DEPARTMENT_SUBDEPARTMENT_TRANSFER]

    def test_complaint_waiting_at_department_level(self, org, validator, admin_user):
        result = validator.validate_transfer_constraints(
            _request(admin_user, (org.wsd, None), org.wsd, org.pipes),
        )
        assert result.ok

    def test_stale_declared_source(self, org, validator, admin_user):
        result = validator.validate_transfer_constraints(_request(
            admin_user, (org.pwd, org.roads), org.wsd, org.pipes,
            declared_from_department_id=org.pwd.pk,
            declared_from_sub_department_id=org.drain.pk,
        ))
        assert result.constraints() == [ErrorCode.STALE_SOURCE_ASSIGNMENT]
        assert result.violations[0].reference == {
            "declared": [org.pwd.pk, org.drain.pk],
            "current": [org.pwd.pk, org.roads.pk],
        }

    def test_sub_department_required_for_officers(self, org, validator, super_admin):
        result = validator.validate_transfer_constraints(_request(
            super_admin, (org.pwd, org.roads), org.wsd,
            minimum_role="SUPER_ADMIN", require_sub_department=True, entity="Officer",
        ))
        assert result.constraints() == [ErrorCode.INVALID_ASSIGNMENT]
