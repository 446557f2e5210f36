"""
Accounts app models.

Defines the hierarchical Role system and a custom User model that extends
Django's ``AbstractUser`` with the officer-specific fields: officer code,
the single department / sub-department assignment, credential flags and
the embedded transfer history.
"""

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import models


class RoleCode(models.TextChoices):
    CITIZEN = "CITIZEN", "Citizen"
    OFFICER = "OFFICER", "Officer"
    ADMIN = "ADMIN", "Admin"
    SUPER_ADMIN = "SUPER_ADMIN", "Super Admin"


# Higher value = more authority.
ROLE_LEVELS: dict[str, int] = {
    RoleCode.CITIZEN: 0,
    RoleCode.OFFICER: 10,
    RoleCode.ADMIN: 50,
    RoleCode.SUPER_ADMIN: 100,
}


class Role(models.Model):
    """
    Platform role.

    ``code`` is what services check; ``hierarchy_level`` encodes the
    relative power (Super Admin > Admin > Officer > Citizen) so that an
    operation can require "Officer or above".  Default roles are seeded by
    the ``setup_roles`` management command.
    """

    code = models.CharField(
        max_length=20,
        choices=RoleCode.choices,
        unique=True,
        verbose_name="Role Code",
    )
    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Role Name",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    hierarchy_level = models.PositiveSmallIntegerField(
        default=0,
        verbose_name="Hierarchy Level",
        help_text="Higher value = more authority (e.g. Super Admin=100, Citizen=0).",
    )

    class Meta:
        verbose_name = "Role"
        verbose_name_plural = "Roles"
        ordering = ["-hierarchy_level"]

    def __str__(self):
        return self.name


class User(AbstractUser):
    """
    Custom user model for the grievance platform.

    Citizens, officers and administrators share this table; the ``role``
    FK tells them apart.  Officer rows additionally carry:

    * ``officer_code`` — ``{DEPT}_{SUBDEPT}_{YEAR}_{NNNN}``, unique.
    * ``assigned_department`` / ``assigned_sub_department`` — both set or
      both empty, and the sub-department must belong to the department.
      The rule is enforced by the lifecycle services and by ``clean()``,
      not by a database constraint, so that drift left behind by partial
      failures stays visible to the consistency auditor.
    * ``transfer_history`` — ordered list of reassignment entries.
    """

    full_name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        verbose_name="Full Name",
    )
    phone_number = models.CharField(
        max_length=15,
        blank=True,
        default="",
        verbose_name="Phone Number",
    )

    # ── Single-role assignment ───────────────────────────────────────
    role = models.ForeignKey(
        Role,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
        verbose_name="Assigned Role",
    )

    # ── Officer fields ───────────────────────────────────────────────
    officer_code = models.CharField(
        max_length=40,
        unique=True,
        null=True,
        blank=True,
        verbose_name="Officer Code",
    )
    assigned_department = models.ForeignKey(
        "directory.Department",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="officers",
        verbose_name="Assigned Department",
    )
    assigned_sub_department = models.ForeignKey(
        "directory.SubDepartment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="officers",
        verbose_name="Assigned Sub-Department",
    )
    is_temporary_password = models.BooleanField(
        default=False,
        verbose_name="Temporary Password",
    )
    password_change_required = models.BooleanField(
        default=False,
        verbose_name="Password Change Required",
    )
    transfer_history = models.JSONField(
        default=list,
        blank=True,
        verbose_name="Transfer History",
    )

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        indexes = [
            models.Index(fields=["assigned_department", "assigned_sub_department"], name="user_assignment_idx"),
        ]

    def __str__(self):
        role_name = self.role.name if self.role else "No Role"
        return f"{self.username} ({self.display_name}) - {role_name}"

    @property
    def display_name(self) -> str:
        return self.full_name or self.get_full_name() or self.username

    # ── Helper predicates for role checks ────────────────────────────

    def has_role(self, code: str) -> bool:
        """Check if the user's current role matches the given code."""
        return self.role is not None and self.role.code == code

    # ── Assignment invariant ─────────────────────────────────────────

    def clean(self):
        super().clean()
        dept_set = self.assigned_department_id is not None
        sub_set = self.assigned_sub_department_id is not None
        if dept_set != sub_set:
            raise ValidationError(
                "Assigned department and sub-department must both be set or both be empty."
            )
        if sub_set and self.assigned_sub_department.department_id != self.assigned_department_id:
            raise ValidationError(
                {"assigned_sub_department": "Sub-department does not belong to the assigned department."}
            )
