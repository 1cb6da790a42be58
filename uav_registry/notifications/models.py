from django.db import models
from django.utils import timezone


class CertificateKind(models.TextChoices):
    """
    Expiry-tracked documents a pilot can hold.
    The label is what the reminder email shows.
    """
    MEDICAL = "medical", "תעודה רפואית"
    INSTRUCTOR = "instructor", "רישיון מדריך"


def certificate_label(kind):
    return CertificateKind(kind).label


class ReminderLedgerEntry(models.Model):
    """
    Marker that the reminder for one field instance was dispatched.

    The key is (subject, kind, expiry date): a renewed document has a new
    expiry date and therefore a fresh key. Rows are written once, after
    the pilot's email went out, and never updated.
    """

    # =====================================================
    # KEY
    # =====================================================
    subject_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Stable id of the pilot the reminder was sent to"
    )

    kind = models.CharField(
        max_length=20,
        choices=CertificateKind.choices,
    )

    expiry_date = models.DateField()

    # =====================================================
    # VALUE
    # =====================================================
    subject_name = models.CharField(
        max_length=200,
        blank=True,
    )

    sent_at = models.DateTimeField(
        default=timezone.now,
        db_index=True
    )

    sent_by = models.CharField(
        max_length=30,
        blank=True,
        default="scheduler",
        help_text="Trigger that dispatched the reminder"
    )

    class Meta:
        ordering = ["-sent_at"]
        verbose_name = "reminder ledger entry"
        verbose_name_plural = "reminder ledger"
        constraints = [
            models.UniqueConstraint(
                fields=["subject_id", "kind", "expiry_date"],
                name="unique_reminder_per_field_instance",
            ),
        ]

    def __str__(self):
        return f"{self.subject_id}_{self.kind}_{self.expiry_date:%Y-%m-%d}"


class ReminderRunLock(models.Model):
    """
    Held while a reminder run is in progress.

    The unique name makes the insert the lock: a second run that tries to
    create the same row gets an IntegrityError and backs off. Rows older
    than the configured stale window are taken over, so a crashed run
    cannot block the job forever.
    """
    name = models.CharField(max_length=50, unique=True)
    holder = models.CharField(max_length=30, blank=True)
    acquired_at = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.name} ({self.holder}, {self.acquired_at:%Y-%m-%d %H:%M})"
