import json
import logging

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from pilots.decoders import DecodeError, decode_manager_record, decode_pilot_record
from pilots.models import ManagerRecipient, Pilot

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Import pilots (and optionally manager recipients) from a JSON export "
        "of the previous document store"
    )

    def add_arguments(self, parser):
        parser.add_argument("path", help="JSON file: a list of pilots or {\"pilots\": [...], \"managerEmails\": [...]}")

    def handle(self, *args, **options):
        try:
            with open(options["path"], encoding="utf-8") as fh:
                payload = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise CommandError(f"Cannot read {options['path']}: {exc}") from exc

        if isinstance(payload, list):
            pilot_records, manager_records = payload, []
        elif isinstance(payload, dict):
            pilot_records = payload.get("pilots", [])
            manager_records = payload.get("managerEmails", payload.get("managers", []))
        else:
            raise CommandError("Expected a JSON list or object at the top level")

        # All or nothing: one bad record aborts the whole import
        with transaction.atomic():
            created_pilots, skipped_pilots = self.import_pilots(pilot_records)
            created_managers = self.import_managers(manager_records)

        self.stdout.write(
            self.style.SUCCESS(
                f"Imported {created_pilots} pilot(s) "
                f"({skipped_pilots} already present), "
                f"{created_managers} manager recipient(s)"
            )
        )

    def import_pilots(self, records):
        created = skipped = 0

        for index, record in enumerate(records):
            try:
                fields = decode_pilot_record(record)
                pilot = Pilot(**fields)
                pilot.full_clean()
            except (DecodeError, ValidationError) as exc:
                raise CommandError(f"Pilot record #{index}: {exc}") from exc

            exists = Pilot.objects.filter(
                first_name=pilot.first_name,
                last_name=pilot.last_name,
                email=pilot.email,
            ).exists()
            if exists:
                logger.info("Pilot %s already exists, skipping", pilot.full_name)
                skipped += 1
                continue

            pilot.save()
            created += 1

        return created, skipped

    def import_managers(self, records):
        created = 0

        for index, record in enumerate(records):
            try:
                fields = decode_manager_record(record)
            except DecodeError as exc:
                raise CommandError(f"Manager record #{index}: {exc}") from exc

            _, was_created = ManagerRecipient.objects.get_or_create(
                email=fields["email"],
                defaults={"name": fields["name"], "position": fields["position"]},
            )
            created += int(was_created)

        return created
