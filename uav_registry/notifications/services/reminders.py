"""
Daily expiry reminders.

A reminder goes out when a tracked document is exactly ``lead_days``
(45) days from expiring. The job is meant to run once a day, so every
field instance hits that day once; a day the job does not run is a
reminder that is not sent. The ledger guarantees at most one reminder
per (pilot, kind, expiry date) no matter how often the job runs.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import timedelta
from typing import List

from django.db import DatabaseError
from django.utils import timezone

from notifications.services.config import ReminderConfig
from notifications.services.dispatch import ReminderPayload, build_dispatcher
from notifications.services.expiry import days_until, format_expiry
from notifications.services.ledger import LedgerKey, ReminderLedger, run_lock
from pilots.repository import (
    Subject,
    list_manager_recipients,
    list_subjects,
)

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    checked: int = 0
    triggered: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    skipped_no_email: int = 0
    manager_sent: int = 0
    manager_failed: int = 0
    ledger_errors: int = 0
    duplicate_sends: int = 0
    dry_run: bool = False
    sent_keys: List[str] = field(default_factory=list)
    failed_keys: List[str] = field(default_factory=list)
    pending_keys: List[str] = field(default_factory=list)

    def as_dict(self):
        return asdict(self)


class ReminderScheduler:
    """
    Evaluates and dispatches one batch. Not safe to run twice at once
    against the same ledger; run_expiry_reminders holds the run lock.
    """

    def __init__(self, config: ReminderConfig, dispatcher, ledger, sleep=time.sleep):
        self.config = config
        self.dispatcher = dispatcher
        self.ledger = ledger
        self._sleep = sleep
        self._outbound = 0

    def run_check(self, subjects, now, managers=(), dry_run=False) -> DispatchReport:
        report = DispatchReport(dry_run=dry_run)
        managers = list(managers)
        self._outbound = 0

        for subject in subjects:
            if not subject.email:
                logger.warning("Pilot %s has no email address, skipping", subject.full_name)
                report.skipped_no_email += 1
                continue

            for tracked in subject.tracked_fields():
                report.checked += 1
                days = days_until(now, tracked.expiry)

                logger.debug(
                    "%s: %s expires %s (%s days left)",
                    subject.full_name, tracked.kind, tracked.expiry, days
                )

                if days != self.config.lead_days:
                    continue

                report.triggered += 1
                key = LedgerKey(subject.id, tracked.kind, tracked.expiry)

                if self.ledger.was_sent(key):
                    logger.info("Reminder %s already sent, skipping", key)
                    report.skipped += 1
                    continue

                if dry_run:
                    logger.info("Dry run: would send reminder %s to %s", key, subject.email)
                    report.pending_keys.append(str(key))
                    continue

                self._dispatch(subject, tracked, days, key, managers, report)

        return report

    def _dispatch(self, subject: Subject, tracked, days, key, managers, report):
        payload = ReminderPayload(
            pilot_name=subject.full_name,
            recipient_email=subject.email,
            kind=tracked.kind,
            expiry_display=format_expiry(tracked.expiry),
            days_remaining=days,
        )

        if not self._send(payload):
            logger.error("Failed to send %s reminder to %s", tracked.kind, subject.full_name)
            report.failed += 1
            report.failed_keys.append(str(key))
            return

        report.sent += 1
        report.sent_keys.append(str(key))

        try:
            recorded = self.ledger.mark_sent(key, timezone.now(), subject_name=subject.full_name)
        except DatabaseError:
            # The email is out but unrecorded: a rerun today would send it again.
            logger.exception("Reminder %s was sent but could not be recorded", key)
            report.ledger_errors += 1
        else:
            if not recorded:
                logger.warning(
                    "Reminder %s was already in the ledger when this send finished; "
                    "the pilot may have been emailed twice", key
                )
                report.duplicate_sends += 1

        logger.info("Sent %s reminder to %s", tracked.kind, subject.full_name)

        for manager in managers:
            if self._send(payload.for_recipient(manager.email)):
                report.manager_sent += 1
            else:
                logger.warning(
                    "Failed to send manager copy of %s to %s", key, manager.email
                )
                report.manager_failed += 1

    def _send(self, payload) -> bool:
        if self._outbound:
            self._sleep(self.config.send_delay_seconds)
        self._outbound += 1

        try:
            return bool(self.dispatcher.send(payload))
        except Exception:
            logger.exception("Dispatcher raised while sending to %s", payload.recipient_email)
            return False


# ============================================================
# ENTRY POINTS
# ============================================================

def run_expiry_reminders(now=None, dry_run=False, sent_by="scheduler", config=None, dispatcher=None):
    """
    One complete reminder run: configuration, repository read, dispatch.

    Raises ReminderConfigurationError before anything is read when the
    dispatcher cannot be built, RepositoryError when pilots or managers
    cannot be loaded, and ReminderRunInProgress when another run holds
    the run lock.
    """
    if config is None:
        config = ReminderConfig.from_settings(sent_by=sent_by)

    if dispatcher is None and not dry_run:
        dispatcher = build_dispatcher(config)

    now = now or timezone.now()

    if dry_run:
        # Sends and records nothing, so it may overlap a real run
        return _run_check(config, dispatcher, now, dry_run=True)

    stale_after = timedelta(minutes=config.run_lock_stale_minutes)
    with run_lock(config.sent_by, stale_after):
        return _run_check(config, dispatcher, now, dry_run=False)


def _run_check(config, dispatcher, now, dry_run):
    managers = list_manager_recipients()
    if not managers:
        logger.warning("No manager recipients configured, manager copies will be skipped")

    subjects = list_subjects()
    logger.info("Checking %s pilot(s) against %s manager(s)", len(subjects), len(managers))

    scheduler = ReminderScheduler(config, dispatcher, ReminderLedger(sent_by=config.sent_by))
    report = scheduler.run_check(subjects, now, managers=managers, dry_run=dry_run)

    logger.info(
        "Reminder run finished: checked=%s triggered=%s sent=%s failed=%s skipped=%s",
        report.checked, report.triggered, report.sent, report.failed, report.skipped
    )
    return report


def send_manual_reminder(pilot, kind, now=None, config=None, dispatcher=None) -> bool:
    """
    Send one reminder to one pilot right now, ignoring the 45-day rule
    and the ledger. Nothing is recorded and managers are not copied.
    """
    if config is None:
        config = ReminderConfig.from_settings(sent_by="dashboard")
    if dispatcher is None:
        dispatcher = build_dispatcher(config)

    subject = Subject.from_pilot(pilot)
    tracked = next((f for f in subject.tracked_fields() if f.kind == kind), None)
    if tracked is None:
        raise ValueError(f"{subject.full_name} has no tracked {kind} expiry")
    if not subject.email:
        raise ValueError(f"{subject.full_name} has no email address")

    payload = ReminderPayload(
        pilot_name=subject.full_name,
        recipient_email=subject.email,
        kind=tracked.kind,
        expiry_display=format_expiry(tracked.expiry),
        days_remaining=days_until(now or timezone.now(), tracked.expiry),
    )
    return dispatcher.send(payload)
