"""
Management command: audit_consistency
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Runs the read-only consistency audit and prints its findings.  With
``--repair`` the cleanup pass runs afterwards as a single transaction and
the audit is repeated to show the result.

Exit status is non-zero when findings remain (useful for cron alerts).

Usage::

    python manage.py audit_consistency
    python manage.py audit_consistency --repair
"""

from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import DomainError
from integrity.services import ConsistencyAuditor


class Command(BaseCommand):
    help = "Audit officer / directory / complaint consistency and optionally repair drift."

    def add_arguments(self, parser):
        parser.add_argument(
            "--repair",
            action="store_true",
            help="Run the cleanup pass after auditing.",
        )

    def handle(self, *args, **options):
        auditor = ConsistencyAuditor()
        report = auditor.audit_data_consistency()
        self._print_report(report)

        if options["repair"] and not report.is_consistent:
            try:
                result = auditor.cleanup_orphaned_records()
            except DomainError as exc:
                raise CommandError(f"Cleanup failed [{exc.code}]: {exc.message}") from exc
            self.stdout.write(self.style.SUCCESS(
                f"\n  Repaired {result.total} record(s): "
                f"sub-departments={result.orphaned_sub_departments}, "
                f"incomplete officers={result.incomplete_officers}, "
                f"mismatched officers={result.mismatched_officers}, "
                f"complaints={result.dangling_complaints}"
            ))
            report = auditor.audit_data_consistency()
            self._print_report(report)

        if not report.is_consistent:
            raise CommandError(f"{len(report.findings)} consistency issue type(s) found.")

    def _print_report(self, report):
        self.stdout.write(self.style.MIGRATE_HEADING("\n  Statistics"))
        for key, value in report.statistics.items():
            self.stdout.write(f"    {key:<24s} {value}")

        if report.is_consistent:
            self.stdout.write(self.style.SUCCESS("\n  ✔  No consistency issues found."))
            return

        self.stdout.write(self.style.MIGRATE_HEADING("\n  Findings"))
        for finding in report.findings:
            self.stdout.write(self.style.WARNING(
                f"    ⚠  [{finding.severity}] {finding.type}: {finding.count} — {finding.description}"
            ))
        self.stdout.write(self.style.MIGRATE_HEADING("\n  Recommendations"))
        for line in report.recommendations:
            self.stdout.write(f"    • {line}")
