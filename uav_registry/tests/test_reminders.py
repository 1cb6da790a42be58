from dataclasses import replace
from datetime import date, datetime
from unittest import mock

import pytest
from django.db import DatabaseError

from notifications.models import ReminderLedgerEntry, ReminderRunLock
from notifications.services.config import ReminderConfig, ReminderConfigurationError
from notifications.services.ledger import ReminderLedger, ReminderRunInProgress
from notifications.services.reminders import (
    ReminderScheduler,
    run_expiry_reminders,
    send_manual_reminder,
)
from pilots.models import ManagerRecipient
from pilots.repository import RepositoryError

JAN_1 = datetime(2025, 1, 1, 8, 0)
JAN_2 = datetime(2025, 1, 2, 8, 0)


def scheduler_for(config, dispatcher, ledger):
    sleep = mock.Mock()
    return ReminderScheduler(config, dispatcher, ledger, sleep=sleep), sleep


# ============================================================
# TRIGGER RULE
# ============================================================

def test_sends_exactly_forty_five_days_before_expiry(
    reminder_config, dispatcher, memory_ledger, subject_factory
):
    scheduler, _ = scheduler_for(reminder_config, dispatcher, memory_ledger)

    report = scheduler.run_check([subject_factory()], JAN_1)

    assert report.triggered == 1
    assert report.sent == 1
    assert report.sent_keys == ["1_medical_2025-02-15"]
    payload = dispatcher.calls[0]
    assert payload.recipient_email == "yossi@example.com"
    assert payload.kind == "medical"
    assert payload.expiry_display == "15.2.2025"
    assert payload.days_remaining == 45
    assert "1_medical_2025-02-15" in memory_ledger.entries


def test_nothing_is_sent_on_other_days(
    reminder_config, dispatcher, memory_ledger, subject_factory
):
    scheduler, _ = scheduler_for(reminder_config, dispatcher, memory_ledger)

    report = scheduler.run_check([subject_factory()], JAN_2)

    assert report.checked == 1
    assert report.triggered == 0
    assert dispatcher.calls == []
    assert memory_ledger.entries == {}


@pytest.mark.django_db
def test_second_run_on_the_same_day_sends_nothing(
    reminder_config, dispatcher, subject_factory
):
    ledger = ReminderLedger()
    scheduler, _ = scheduler_for(reminder_config, dispatcher, ledger)
    subjects = [subject_factory()]

    first = scheduler.run_check(subjects, JAN_1)
    second = scheduler.run_check(subjects, JAN_1)

    assert first.sent == 1
    assert second.sent == 0
    assert second.skipped == 1
    assert len(dispatcher.calls) == 1
    assert ReminderLedgerEntry.objects.count() == 1


@pytest.mark.django_db
def test_renewed_document_gets_a_new_reminder(
    reminder_config, dispatcher, subject_factory
):
    ledger = ReminderLedger()
    scheduler, _ = scheduler_for(reminder_config, dispatcher, ledger)

    scheduler.run_check([subject_factory()], JAN_1)
    renewed = subject_factory(medical=date(2026, 2, 15))
    report = scheduler.run_check([renewed], datetime(2026, 1, 1, 8, 0))

    assert report.sent == 1
    assert len(dispatcher.calls) == 2
    assert set(ReminderLedgerEntry.objects.values_list("expiry_date", flat=True)) == {
        date(2025, 2, 15),
        date(2026, 2, 15),
    }


def test_instructor_license_is_ignored_for_non_instructors(
    reminder_config, dispatcher, memory_ledger, subject_factory
):
    scheduler, _ = scheduler_for(reminder_config, dispatcher, memory_ledger)
    subject = subject_factory(
        medical=date(2025, 6, 1),
        is_instructor=False,
        instructor=date(2025, 2, 15),
    )

    report = scheduler.run_check([subject], JAN_1)

    assert report.checked == 1
    assert dispatcher.calls == []


def test_instructor_license_is_tracked_for_instructors(
    reminder_config, dispatcher, memory_ledger, subject_factory
):
    scheduler, _ = scheduler_for(reminder_config, dispatcher, memory_ledger)
    subject = subject_factory(
        medical=date(2025, 2, 15),
        is_instructor=True,
        instructor=date(2025, 2, 15),
    )

    report = scheduler.run_check([subject], JAN_1)

    assert report.sent == 2
    assert [p.kind for p in dispatcher.calls] == ["medical", "instructor"]
    assert sorted(memory_ledger.entries) == [
        "1_instructor_2025-02-15",
        "1_medical_2025-02-15",
    ]


def test_pilots_without_email_are_skipped(
    reminder_config, dispatcher, memory_ledger, subject_factory
):
    scheduler, _ = scheduler_for(reminder_config, dispatcher, memory_ledger)

    report = scheduler.run_check([subject_factory(email="")], JAN_1)

    assert report.skipped_no_email == 1
    assert report.checked == 0
    assert dispatcher.calls == []


# ============================================================
# FAILURES
# ============================================================

def test_one_failed_send_does_not_stop_the_run(
    reminder_config, dispatcher_factory, memory_ledger, subject_factory
):
    dispatcher = dispatcher_factory(failing={"a@example.com"})
    scheduler, _ = scheduler_for(reminder_config, dispatcher, memory_ledger)
    subjects = [
        subject_factory(id="a", email="a@example.com"),
        subject_factory(id="b", email="b@example.com"),
        subject_factory(id="c", email="c@example.com"),
    ]

    report = scheduler.run_check(subjects, JAN_1)

    assert report.failed == 1
    assert report.sent == 2
    assert report.failed_keys == ["a_medical_2025-02-15"]
    assert sorted(memory_ledger.entries) == [
        "b_medical_2025-02-15",
        "c_medical_2025-02-15",
    ]


def test_failed_reminder_is_retried_on_a_later_run_the_same_day(
    reminder_config, dispatcher_factory, memory_ledger, subject_factory
):
    failing = dispatcher_factory(failing={"yossi@example.com"})
    scheduler, _ = scheduler_for(reminder_config, failing, memory_ledger)
    scheduler.run_check([subject_factory()], JAN_1)

    working = dispatcher_factory()
    scheduler, _ = scheduler_for(reminder_config, working, memory_ledger)
    report = scheduler.run_check([subject_factory()], JAN_1)

    assert report.sent == 1
    assert len(working.calls) == 1


def test_dispatcher_exception_counts_as_failure(
    reminder_config, memory_ledger, subject_factory
):
    dispatcher = mock.Mock()
    dispatcher.send.side_effect = RuntimeError("boom")
    scheduler, _ = scheduler_for(reminder_config, dispatcher, memory_ledger)

    report = scheduler.run_check([subject_factory()], JAN_1)

    assert report.failed == 1
    assert memory_ledger.entries == {}


def test_ledger_write_failure_is_reported_and_managers_still_copied(
    reminder_config, dispatcher, managers, subject_factory
):
    ledger = mock.Mock()
    ledger.was_sent.return_value = False
    ledger.mark_sent.side_effect = DatabaseError("disk full")
    scheduler, _ = scheduler_for(reminder_config, dispatcher, ledger)

    report = scheduler.run_check([subject_factory()], JAN_1, managers=managers)

    assert report.sent == 1
    assert report.ledger_errors == 1
    assert report.manager_sent == 2


def test_already_recorded_key_after_send_is_flagged(
    reminder_config, dispatcher, subject_factory, caplog
):
    ledger = mock.Mock()
    ledger.was_sent.return_value = False
    ledger.mark_sent.return_value = False
    scheduler, _ = scheduler_for(reminder_config, dispatcher, ledger)

    report = scheduler.run_check([subject_factory()], JAN_1)

    assert report.sent == 1
    assert report.duplicate_sends == 1
    assert "already in the ledger" in caplog.text


# ============================================================
# MANAGER COPIES AND PACING
# ============================================================

def test_managers_receive_copies_after_the_pilot(
    reminder_config, dispatcher, memory_ledger, managers, subject_factory
):
    scheduler, sleep = scheduler_for(reminder_config, dispatcher, memory_ledger)

    report = scheduler.run_check([subject_factory()], JAN_1, managers=managers)

    assert dispatcher.recipients == [
        "yossi@example.com",
        "dana@example.com",
        "ron@example.com",
    ]
    assert {(p.kind, p.expiry_display, p.days_remaining) for p in dispatcher.calls} == {
        ("medical", "15.2.2025", 45)
    }
    assert report.manager_sent == 2
    assert sleep.call_args_list == [mock.call(0.5), mock.call(0.5)]


def test_managers_are_not_copied_when_the_pilot_send_fails(
    reminder_config, dispatcher_factory, memory_ledger, managers, subject_factory
):
    dispatcher = dispatcher_factory(failing={"yossi@example.com"})
    scheduler, _ = scheduler_for(reminder_config, dispatcher, memory_ledger)

    report = scheduler.run_check([subject_factory()], JAN_1, managers=managers)

    assert dispatcher.recipients == ["yossi@example.com"]
    assert report.manager_sent == 0


def test_manager_failure_does_not_touch_the_ledger(
    reminder_config, dispatcher_factory, memory_ledger, managers, subject_factory
):
    dispatcher = dispatcher_factory(failing={"dana@example.com"})
    scheduler, _ = scheduler_for(reminder_config, dispatcher, memory_ledger)

    report = scheduler.run_check([subject_factory()], JAN_1, managers=managers)

    assert report.sent == 1
    assert report.manager_failed == 1
    assert report.manager_sent == 1
    assert list(memory_ledger.entries) == ["1_medical_2025-02-15"]


def test_sends_are_paced_across_pilots(
    reminder_config, dispatcher, memory_ledger, subject_factory
):
    scheduler, sleep = scheduler_for(reminder_config, dispatcher, memory_ledger)
    subjects = [subject_factory(id=str(n), email=f"p{n}@example.com") for n in range(3)]

    scheduler.run_check(subjects, JAN_1)

    assert len(dispatcher.calls) == 3
    assert sleep.call_count == 2


# ============================================================
# DRY RUN
# ============================================================

def test_dry_run_reports_without_sending_or_recording(
    reminder_config, dispatcher, memory_ledger, managers, subject_factory
):
    scheduler, sleep = scheduler_for(reminder_config, dispatcher, memory_ledger)

    report = scheduler.run_check(
        [subject_factory()], JAN_1, managers=managers, dry_run=True
    )

    assert report.dry_run is True
    assert report.pending_keys == ["1_medical_2025-02-15"]
    assert report.sent == 0
    assert dispatcher.calls == []
    assert memory_ledger.entries == {}
    sleep.assert_not_called()


# ============================================================
# ENTRY POINTS
# ============================================================

@pytest.mark.django_db
def test_run_expiry_reminders_reads_the_registry(
    reminder_config, dispatcher, make_pilot
):
    pilot = make_pilot()
    make_pilot(first_name="אבי", email="avi@example.com",
               health_certificate_expiry=date(2025, 9, 1))
    ManagerRecipient.objects.create(name="דנה", email="dana@example.com")

    config = replace(reminder_config, send_delay_seconds=0)
    report = run_expiry_reminders(now=JAN_1, config=config, dispatcher=dispatcher)

    assert report.checked == 2
    assert report.sent == 1
    assert dispatcher.recipients == ["sara@example.com", "dana@example.com"]
    entry = ReminderLedgerEntry.objects.get()
    assert entry.subject_id == str(pilot.pk)
    assert entry.subject_name == "שרה לוי"
    assert entry.sent_by == "scheduler"


@pytest.mark.django_db
def test_missing_credentials_abort_before_reading_pilots(settings):
    settings.UAV_REMINDERS = {"backend": "emailjs"}

    with mock.patch("notifications.services.reminders.list_subjects") as list_subjects:
        with pytest.raises(ReminderConfigurationError):
            run_expiry_reminders(now=JAN_1)

    list_subjects.assert_not_called()


@pytest.mark.django_db
def test_dry_run_needs_no_credentials(settings, make_pilot):
    settings.UAV_REMINDERS = {"backend": "emailjs"}
    make_pilot()

    report = run_expiry_reminders(now=JAN_1, dry_run=True)

    assert report.pending_keys
    assert ReminderLedgerEntry.objects.count() == 0


@pytest.mark.django_db
def test_repository_errors_propagate(reminder_config, dispatcher):
    with mock.patch(
        "notifications.services.reminders.list_manager_recipients",
        side_effect=RepositoryError("Could not load manager recipients"),
    ):
        with pytest.raises(RepositoryError):
            run_expiry_reminders(now=JAN_1, config=reminder_config, dispatcher=dispatcher)

    assert dispatcher.calls == []


@pytest.mark.django_db
def test_manual_reminder_ignores_the_ledger(reminder_config, dispatcher, make_pilot):
    pilot = make_pilot(health_certificate_expiry=date(2025, 1, 20))

    sent = send_manual_reminder(
        pilot, "medical", now=JAN_1, config=reminder_config, dispatcher=dispatcher
    )

    assert sent is True
    assert dispatcher.calls[0].days_remaining == 19
    assert ReminderLedgerEntry.objects.count() == 0


@pytest.mark.django_db
def test_manual_reminder_requires_a_tracked_field(reminder_config, dispatcher, make_pilot):
    pilot = make_pilot(is_instructor=False)

    with pytest.raises(ValueError):
        send_manual_reminder(pilot, "instructor", config=reminder_config, dispatcher=dispatcher)


def test_config_rejects_unknown_options(settings):
    settings.UAV_REMINDERS = {"lead_dayz": 45}

    with pytest.raises(ReminderConfigurationError):
        ReminderConfig.from_settings()


def test_config_overrides_take_precedence(settings):
    settings.UAV_REMINDERS = {"lead_days": 30, "sent_by": "scheduler"}

    config = ReminderConfig.from_settings(sent_by="dashboard")

    assert config.lead_days == 30
    assert config.sent_by == "dashboard"


# ============================================================
# OVERLAPPING RUNS
# ============================================================

@pytest.mark.django_db
def test_second_run_started_mid_send_is_refused(
    reminder_config, dispatcher_factory, make_pilot
):
    make_pilot()
    config = replace(reminder_config, send_delay_seconds=0)
    dispatcher = dispatcher_factory()
    record_send = dispatcher.send
    refused = []

    def send_while_another_run_starts(payload):
        if not refused:
            # e.g. the dashboard button pressed during the 08:00 job
            with pytest.raises(ReminderRunInProgress) as excinfo:
                run_expiry_reminders(now=JAN_1, config=config, dispatcher=dispatcher)
            refused.append(excinfo.value)
        return record_send(payload)

    dispatcher.send = send_while_another_run_starts

    report = run_expiry_reminders(now=JAN_1, config=config, dispatcher=dispatcher)

    assert refused
    assert report.sent == 1
    assert dispatcher.recipients == ["sara@example.com"]
    assert ReminderLedgerEntry.objects.count() == 1
    assert not ReminderRunLock.objects.exists()


@pytest.mark.django_db
def test_run_lock_is_released_when_the_run_fails(reminder_config, dispatcher):
    with mock.patch(
        "notifications.services.reminders.list_subjects",
        side_effect=RepositoryError("Could not load pilots"),
    ):
        with pytest.raises(RepositoryError):
            run_expiry_reminders(now=JAN_1, config=reminder_config, dispatcher=dispatcher)

    assert not ReminderRunLock.objects.exists()


@pytest.mark.django_db
def test_dry_run_ignores_the_run_lock(reminder_config, make_pilot):
    make_pilot()
    ReminderRunLock.objects.create(name="expiry_reminders", holder="scheduler")

    report = run_expiry_reminders(now=JAN_1, dry_run=True, config=reminder_config)

    assert report.pending_keys
