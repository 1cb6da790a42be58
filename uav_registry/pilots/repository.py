"""
Read side of the pilot registry as seen by the reminder job.

The job never touches model instances: it receives immutable Subject and
Recipient values built here, so the reminder logic only depends on the
normalized shape below.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from django.db import DatabaseError

from notifications.models import CertificateKind
from pilots.models import ManagerRecipient, Pilot

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Pilots or recipients could not be read from the database."""


@dataclass(frozen=True)
class TrackedField:
    kind: str
    expiry: date


@dataclass(frozen=True)
class Subject:
    id: str
    first_name: str
    last_name: str
    email: str
    is_instructor: bool
    medical_expiry: Optional[date]
    instructor_expiry: Optional[date] = None

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def tracked_fields(self) -> List[TrackedField]:
        """
        Expiry dates that take part in reminders.

        The instructor license only counts while the pilot is flagged as
        an instructor, whatever the stored date says.
        """
        fields = []
        if self.medical_expiry is not None:
            fields.append(TrackedField(CertificateKind.MEDICAL, self.medical_expiry))
        if self.is_instructor and self.instructor_expiry is not None:
            fields.append(TrackedField(CertificateKind.INSTRUCTOR, self.instructor_expiry))
        return fields

    @classmethod
    def from_pilot(cls, pilot: Pilot) -> "Subject":
        return cls(
            id=str(pilot.pk),
            first_name=pilot.first_name,
            last_name=pilot.last_name,
            email=pilot.email,
            is_instructor=pilot.is_instructor,
            medical_expiry=pilot.health_certificate_expiry,
            instructor_expiry=pilot.instructor_license_expiry,
        )


@dataclass(frozen=True)
class Recipient:
    name: str
    email: str
    position: str = ""

    @classmethod
    def from_manager(cls, manager: ManagerRecipient) -> "Recipient":
        return cls(
            name=manager.name,
            email=manager.email,
            position=manager.position,
        )


def list_subjects() -> List[Subject]:
    try:
        pilots = list(Pilot.objects.order_by("-created_at", "pk"))
    except DatabaseError as exc:
        logger.exception("Failed to load pilots")
        raise RepositoryError("Could not load pilots") from exc

    return [Subject.from_pilot(pilot) for pilot in pilots]


def list_manager_recipients() -> List[Recipient]:
    try:
        managers = list(ManagerRecipient.objects.order_by("-created_at", "pk"))
    except DatabaseError as exc:
        logger.exception("Failed to load manager recipients")
        raise RepositoryError("Could not load manager recipients") from exc

    return [Recipient.from_manager(manager) for manager in managers]
