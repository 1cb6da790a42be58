from datetime import date

import pytest

from notifications.services.config import ReminderConfig
from notifications.services.ledger import LedgerKey
from pilots.repository import Recipient, Subject


class FakeDispatcher:
    """Records every payload; addresses in ``failing`` are refused."""

    def __init__(self, failing=()):
        self.calls = []
        self.failing = set(failing)

    def send(self, payload):
        self.calls.append(payload)
        return payload.recipient_email not in self.failing

    @property
    def recipients(self):
        return [payload.recipient_email for payload in self.calls]


class MemoryLedger:

    def __init__(self):
        self.entries = {}

    def was_sent(self, key: LedgerKey):
        return str(key) in self.entries

    def mark_sent(self, key, timestamp, subject_name=""):
        if str(key) in self.entries:
            return False
        self.entries[str(key)] = timestamp
        return True

    def purge_older_than(self, cutoff):
        stale = [k for k, sent_at in self.entries.items() if sent_at < cutoff]
        for k in stale:
            del self.entries[k]
        return len(stale)


def make_subject(id="1", first_name="יוסי", last_name="כהן", email="yossi@example.com",
                 medical=date(2025, 2, 15), is_instructor=False, instructor=None):
    return Subject(
        id=id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        is_instructor=is_instructor,
        medical_expiry=medical,
        instructor_expiry=instructor,
    )


@pytest.fixture
def reminder_config():
    return ReminderConfig(
        send_delay_seconds=0.5,
        emailjs_service_id="service_test",
        emailjs_template_id="template_test",
        emailjs_public_key="public_test",
        emailjs_private_key="private_test",
        from_email="registry@example.com",
    )


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def memory_ledger():
    return MemoryLedger()


@pytest.fixture
def managers():
    return [
        Recipient(name="דנה", email="dana@example.com", position="קצינת בטיחות"),
        Recipient(name="רון", email="ron@example.com"),
    ]


@pytest.fixture
def make_pilot(db):
    from pilots.models import Pilot

    def _make(**overrides):
        fields = {
            "first_name": "שרה",
            "last_name": "לוי",
            "email": "sara@example.com",
            "certifications": ["internal"],
            "categories": ["multirotor_0_25"],
            "health_certificate_expiry": date(2025, 2, 15),
            "is_instructor": False,
        }
        fields.update(overrides)
        return Pilot.objects.create(**fields)

    return _make


@pytest.fixture
def subject_factory():
    return make_subject


@pytest.fixture
def dispatcher_factory():
    return FakeDispatcher
