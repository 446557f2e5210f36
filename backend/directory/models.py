"""
Directory app models.

The organisational tree complaints and officers are attached to:
``Department`` → ``SubDepartment`` (one level).  Records are soft-deleted
through ``is_active``; the core services only ever read them.
"""

from django.core.validators import RegexValidator
from django.db import models

from core.constants import DIRECTORY_CODE_PATTERN
from core.models import TimeStampedModel

directory_code_validator = RegexValidator(
    regex=DIRECTORY_CODE_PATTERN,
    message="Code must be 2-10 uppercase letters or digits.",
)


class Department(TimeStampedModel):
    """
    A government department (e.g. Public Works, Water Supply).

    ``code`` is the short upper-case tag used as the first segment of
    every officer code issued inside this department.
    """

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name="Department Name",
    )
    code = models.CharField(
        max_length=10,
        unique=True,
        validators=[directory_code_validator],
        verbose_name="Department Code",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        verbose_name="Active",
    )

    class Meta:
        verbose_name = "Department"
        verbose_name_plural = "Departments"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.code})"


class SubDepartment(TimeStampedModel):
    """
    A desk inside a department.  Codes are unique per parent department
    only, so ``ROADS`` can exist under two different departments.
    """

    name = models.CharField(
        max_length=100,
        verbose_name="Sub-Department Name",
    )
    code = models.CharField(
        max_length=10,
        validators=[directory_code_validator],
        verbose_name="Sub-Department Code",
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.PROTECT,
        related_name="sub_departments",
        verbose_name="Department",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        verbose_name="Active",
    )

    class Meta:
        verbose_name = "Sub-Department"
        verbose_name_plural = "Sub-Departments"
        ordering = ["department", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["department", "code"],
                name="uniq_subdepartment_code_per_department",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.department.code}/{self.code})"
