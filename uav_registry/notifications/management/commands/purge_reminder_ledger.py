from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from notifications.services.config import ReminderConfig, ReminderConfigurationError
from notifications.services.ledger import ReminderLedger


class Command(BaseCommand):
    help = "Delete reminder ledger entries older than the retention window"

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            help="Retention window in days (defaults to UAV_REMINDERS retention_days)",
        )

    def handle(self, *args, **options):
        days = options.get("days")
        if days is None:
            try:
                days = ReminderConfig.from_settings().retention_days
            except ReminderConfigurationError as exc:
                raise CommandError(str(exc)) from exc

        if days <= 0:
            raise CommandError("--days must be positive")

        cutoff = timezone.now() - timedelta(days=days)
        deleted = ReminderLedger().purge_older_than(cutoff)

        self.stdout.write(
            self.style.SUCCESS(
                f"Removed {deleted} ledger entries sent before {cutoff:%Y-%m-%d}"
            )
        )
