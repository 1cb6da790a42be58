import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, timedelta

from django.db import IntegrityError, transaction
from django.utils import timezone

from notifications.models import ReminderLedgerEntry, ReminderRunLock

logger = logging.getLogger(__name__)

RUN_LOCK_NAME = "expiry_reminders"


class ReminderRunInProgress(Exception):
    """Another reminder run holds the lock; this one sent nothing."""


@dataclass(frozen=True)
class LedgerKey:
    subject_id: str
    kind: str
    expiry_date: date

    def __str__(self):
        return f"{self.subject_id}_{self.kind}_{self.expiry_date.isoformat()}"


class ReminderLedger:
    """
    Durable record of dispatched reminders, one row per field instance.
    """

    def __init__(self, sent_by="scheduler"):
        self.sent_by = sent_by

    def _entries(self, key):
        return ReminderLedgerEntry.objects.filter(
            subject_id=key.subject_id,
            kind=key.kind,
            expiry_date=key.expiry_date,
        )

    def was_sent(self, key: LedgerKey) -> bool:
        return self._entries(key).exists()

    def mark_sent(self, key: LedgerKey, timestamp, subject_name="") -> bool:
        """
        Record the dispatch. Returns False when the key was already
        recorded; the existing row is left untouched.
        """
        _, created = ReminderLedgerEntry.objects.get_or_create(
            subject_id=key.subject_id,
            kind=key.kind,
            expiry_date=key.expiry_date,
            defaults={
                "sent_at": timestamp,
                "subject_name": subject_name,
                "sent_by": self.sent_by,
            },
        )
        return created

    def purge_older_than(self, cutoff) -> int:
        deleted, _ = ReminderLedgerEntry.objects.filter(sent_at__lt=cutoff).delete()
        return deleted


# ============================================================
# RUN LOCK
# ============================================================

def _try_acquire(name, holder, now):
    try:
        with transaction.atomic():
            ReminderRunLock.objects.create(name=name, holder=holder, acquired_at=now)
    except IntegrityError:
        return False
    return True


@contextmanager
def run_lock(holder, stale_after: timedelta, name=RUN_LOCK_NAME):
    """
    Serialize reminder runs across processes.

    The ledger is checked before a send and written after it, so two
    overlapping runs would both see a key as unsent. Only one run may be
    between those two steps at a time.
    """
    now = timezone.now()

    if not _try_acquire(name, holder, now):
        current = ReminderRunLock.objects.filter(name=name).first()
        if current is None or current.acquired_at >= now - stale_after:
            held_by = current.holder if current else "another process"
            raise ReminderRunInProgress(
                f"A reminder run started by {held_by} is still in progress"
            )

        # Stale: the previous run died without releasing. Delete exactly
        # that row so two processes cannot both take it over.
        ReminderRunLock.objects.filter(pk=current.pk, acquired_at=current.acquired_at).delete()
        if not _try_acquire(name, holder, now):
            raise ReminderRunInProgress(
                "Another process took over the stale reminder run lock"
            )
        logger.warning(
            "Took over stale reminder run lock held by %s since %s",
            current.holder, current.acquired_at
        )

    try:
        yield
    finally:
        ReminderRunLock.objects.filter(name=name, holder=holder, acquired_at=now).delete()
