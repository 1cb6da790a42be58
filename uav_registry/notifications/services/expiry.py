"""
Day arithmetic for document expiry.

Only the local calendar day of each input matters: a certificate that
expires tomorrow is one day away at 00:01 and at 23:59 alike.
"""

from datetime import date, datetime

from django.db import models
from django.utils import timezone


class ExpiryStatus(models.TextChoices):
    EXPIRED = "expired", "פג תוקף"
    CRITICAL = "critical", "קריטי"
    WARNING = "warning", "אזהרה"
    GOOD = "good", "תקין"


CRITICAL_DAYS = 7
WARNING_DAYS = 30


def to_local_day(value) -> date:
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def days_until(reference, expiry) -> int:
    """
    Whole days from ``reference`` to ``expiry``; negative once expired.
    """
    return (to_local_day(expiry) - to_local_day(reference)).days


def expiry_status(days: int) -> str:
    if days < 0:
        return ExpiryStatus.EXPIRED
    if days <= CRITICAL_DAYS:
        return ExpiryStatus.CRITICAL
    if days <= WARNING_DAYS:
        return ExpiryStatus.WARNING
    return ExpiryStatus.GOOD


def status_for(reference, expiry) -> str:
    return expiry_status(days_until(reference, expiry))


def format_expiry(value) -> str:
    # d.m.yyyy, as the Hebrew locale prints dates
    day = to_local_day(value)
    return f"{day.day}.{day.month}.{day.year}"
