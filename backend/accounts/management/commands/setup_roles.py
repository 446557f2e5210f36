"""
Management command: setup_roles
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the four platform **Roles** (Super Admin, Admin, Officer, Citizen)
with their codes and hierarchy levels.

The command is **idempotent**: safe to run multiple times.  Existing
roles are updated in place to match ``accounts.services.DEFAULT_ROLES``.

Usage::

    python manage.py setup_roles
"""

from django.core.management.base import BaseCommand

from accounts.models import ROLE_LEVELS
from accounts.services import DEFAULT_ROLES, RoleService


class Command(BaseCommand):
    help = (
        "Seeds the database with the default roles and hierarchy levels.  "
        "Safe to run multiple times (idempotent)."
    )

    def handle(self, *args, **options):
        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n══════════════════════════════════════════"
            "\n  Role Setup — Seeding Default Roles"
            "\n══════════════════════════════════════════\n"
        ))

        created, updated = RoleService.ensure_default_roles()

        for code, name, _ in DEFAULT_ROLES:
            self.stdout.write(self.style.SUCCESS(
                f"  ✔  {name:<12s} (code={code}, hierarchy={ROLE_LEVELS[code]})"
            ))

        self.stdout.write(self.style.MIGRATE_HEADING(
            "\n──────────────────────────────────────────"
        ))
        self.stdout.write(self.style.SUCCESS(
            f"  Roles created: {created}  |  Roles updated: {updated}\n"
        ))
