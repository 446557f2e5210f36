"""
Directory Service Layer.

Read-only lookups the core services make against the organisational
tree.  The capability is expressed as the ``DirectoryStore`` protocol so
validators can be handed a test double; ``OrmDirectoryStore`` is the
production implementation.

Lookups return ``None`` for missing records.  Deciding whether a miss is
an error (and which code it carries) belongs to the caller.
"""

from __future__ import annotations

from typing import Any, Protocol

from .models import Department, SubDepartment


class DirectoryStore(Protocol):
    def get_department(self, department_id: Any) -> Department | None: ...

    def get_sub_department(self, sub_department_id: Any) -> SubDepartment | None: ...


class OrmDirectoryStore:
    """Directory lookups backed by the Django ORM."""

    @staticmethod
    def _get(queryset, pk):
        if pk is None:
            return None
        try:
            return queryset.get(pk=pk)
        except (queryset.model.DoesNotExist, ValueError, TypeError):
            return None

    def get_department(self, department_id: Any) -> Department | None:
        return self._get(Department.objects.all(), department_id)

    def get_sub_department(self, sub_department_id: Any) -> SubDepartment | None:
        return self._get(
            SubDepartment.objects.select_related("department"),
            sub_department_id,
        )

    def active_departments(self):
        return Department.objects.filter(is_active=True)

    def active_sub_departments(self):
        return SubDepartment.objects.filter(is_active=True).select_related("department")
