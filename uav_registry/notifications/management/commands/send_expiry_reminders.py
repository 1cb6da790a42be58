"""
notifications/management/commands/send_expiry_reminders.py

Daily run of the expiry reminders (APScheduler job or external cron).

Exit status is non-zero when the run could not start (missing email
credentials) or the pilot registry could not be read, so the caller
can alert on it.
"""

from datetime import datetime

from django.core.management.base import BaseCommand, CommandError
from django.db import DatabaseError
from django.utils import timezone

from notifications.services.config import ReminderConfigurationError
from notifications.services.ledger import ReminderRunInProgress
from notifications.services.reminders import run_expiry_reminders
from pilots.repository import RepositoryError


def parse_day(value):
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise CommandError(f"Invalid --date {value!r}, expected YYYY-MM-DD") from None


class Command(BaseCommand):
    help = "Email pilots and managers about documents expiring in exactly 45 days"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report which reminders are due without sending or recording them",
        )
        parser.add_argument(
            "--date",
            help="Reference day (YYYY-MM-DD) instead of today",
        )
        parser.add_argument(
            "--sent-by",
            default="command",
            help="Label stored on ledger entries written by this run",
        )

    def handle(self, *args, **options):
        now = timezone.now()
        reference = parse_day(options["date"]) if options.get("date") else now

        self.stdout.write(
            self.style.NOTICE(
                f"[{now:%Y-%m-%d %H:%M:%S}] Starting expiry reminder check"
            )
        )

        try:
            report = run_expiry_reminders(
                now=reference,
                dry_run=options["dry_run"],
                sent_by=options["sent_by"],
            )
        except ReminderRunInProgress as exc:
            # The other run covers today; nothing to do here
            self.stdout.write(self.style.WARNING(f"Skipped: {exc}"))
            return
        except (ReminderConfigurationError, RepositoryError, DatabaseError) as exc:
            raise CommandError(f"Reminder run aborted: {exc}") from exc

        if report.dry_run:
            for key in report.pending_keys:
                self.stdout.write(f"  would send: {key}")

        summary = (
            f"[{now:%Y-%m-%d %H:%M:%S}] Completed: "
            f"{report.sent} reminders sent, "
            f"{report.failed} failed, "
            f"{report.skipped} already sent, "
            f"{report.manager_sent} manager copies"
        )

        if report.failed or report.ledger_errors or report.duplicate_sends:
            self.stdout.write(self.style.WARNING(summary))
        else:
            self.stdout.write(self.style.SUCCESS(summary))
