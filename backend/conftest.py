"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``roles`` fixture seeding the four default roles.
  - ``create_user`` factory fixture for citizens / admins.
  - ``create_department`` / ``create_sub_department`` directory factories.
  - ``org`` fixture: two departments with three sub-departments.
  - ``create_officer`` factory for officers bound to a unit.
  - ``create_complaint`` factory.
  - ``recording_sink`` / ``failing_sink`` audit sink doubles.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest


class RecordingAuditSink:
    """Keeps events in memory instead of writing ``AuditLog`` rows."""

    def __init__(self):
        self.events = []

    def record(self, event):
        self.events.append(event)

    def actions(self):
        return [event.action for event in self.events]


class FailingAuditSink:
    """Raises on every write, to prove mutations roll back with it."""

    def __init__(self, exc: Exception | None = None):
        self.exc = exc or RuntimeError("audit store unavailable")

    def record(self, event):
        raise self.exc


@pytest.fixture()
def recording_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture()
def failing_sink() -> FailingAuditSink:
    return FailingAuditSink()


@pytest.fixture()
def roles(db):
    """Seed default roles; returns ``{code: Role}``."""
    from accounts.models import Role
    from accounts.services import RoleService

    RoleService.ensure_default_roles()
    return {role.code: role for role in Role.objects.all()}


@pytest.fixture()
def create_user(roles):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            admin = create_user(role="SUPER_ADMIN")
            citizen = create_user(username="alice")
    """
    from accounts.models import User

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        role: str | None = "CITIZEN",
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        kwargs.setdefault("email", f"{username}@test.local")
        return User.objects.create_user(
            username=username,
            password=password,
            role=roles[role] if role else None,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def super_admin(create_user):
    return create_user(username="superadmin", role="SUPER_ADMIN")


@pytest.fixture()
def admin_user(create_user):
    return create_user(username="admin", role="ADMIN")


@pytest.fixture()
def citizen(create_user):
    return create_user(username="citizen", role="CITIZEN")


@pytest.fixture()
def create_department(db):
    from directory.models import Department

    def _factory(code: str, name: str | None = None, **kwargs) -> Department:
        return Department.objects.create(code=code, name=name or f"Department {code}", **kwargs)

    return _factory


@pytest.fixture()
def create_sub_department(db):
    from directory.models import SubDepartment

    def _factory(department, code: str, name: str | None = None, **kwargs) -> SubDepartment:
        return SubDepartment.objects.create(
            department=department,
            code=code,
            name=name or f"{department.code} {code}",
            **kwargs,
        )

    return _factory


@pytest.fixture()
def org(create_department, create_sub_department):
    """
    Two departments and three desks::

        PWD ── ROADS, DRAIN
        WSD ── PIPES
    """
    pwd = create_department("PWD", "Public Works")
    wsd = create_department("WSD", "Water Supply")
    return SimpleNamespace(
        pwd=pwd,
        wsd=wsd,
        roads=create_sub_department(pwd, "ROADS", "Roads"),
        drain=create_sub_department(pwd, "DRAIN", "Drainage"),
        pipes=create_sub_department(wsd, "PIPES", "Pipelines"),
    )


@pytest.fixture()
def create_officer(create_user):
    """Officer bound to ``sub_department`` (department taken from it)."""

    _counter = 0

    def _factory(sub_department, **kwargs):
        nonlocal _counter
        _counter += 1
        department = sub_department.department
        kwargs.setdefault(
            "officer_code",
            f"{department.code}_{sub_department.code}_2026_{9000 + _counter:04d}",
        )
        return create_user(
            role="OFFICER",
            full_name=kwargs.pop("full_name", f"Officer {_counter}"),
            assigned_department=department,
            assigned_sub_department=sub_department,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def create_complaint(citizen):
    from complaints.models import Complaint

    def _factory(department, sub_department=None, **kwargs) -> Complaint:
        kwargs.setdefault("title", "Pothole on main road")
        kwargs.setdefault("description", "Large pothole near the bus stop.")
        return Complaint.objects.create(
            citizen=citizen,
            department=department,
            sub_department=sub_department,
            **kwargs,
        )

    return _factory
